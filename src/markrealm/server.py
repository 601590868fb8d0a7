"""Development server: FastAPI app with live reload over a websocket."""

import asyncio
import logging
import re
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, HTMLResponse

from markrealm.config import SiteConfig, load_config
from markrealm.constants import LIVERELOAD_PATH
from markrealm.content.loader import build_content_index
from markrealm.content.models import ContentIndex
from markrealm.content.sidebar import generate_sidebar
from markrealm.pages import render_not_found, render_page, render_sidebar, static_file
from markrealm.watcher import FileEvent, apply_event, watch_content

logger = logging.getLogger(__name__)

# Never serve anything that looks like a config file
_CONFIG_LIKE_RE = re.compile(r"\.(yaml|yml|json|config)")


class DocsSite:
    """Owns the content index for one served directory.

    Request handlers only read ``index``; all writes go through ``rebuild``
    and ``apply``.
    """

    def __init__(self, docs_dir: Path, config: SiteConfig | None = None):
        self.docs_dir = Path(docs_dir).resolve()
        self.config = config if config is not None else load_config(self.docs_dir)
        self.index = ContentIndex()

    def rebuild(self) -> None:
        self.index = build_content_index(self.docs_dir, self.config.ignore)

    def apply(self, event: FileEvent) -> None:
        apply_event(self.index, event, self.docs_dir, self.config.ignore)

    def sidebar_html(self, current_route: str | None = None) -> str:
        items = generate_sidebar(
            self.index,
            self.config.sidebar.order,
            hierarchical=self.config.sidebar.hierarchical,
        )
        return render_sidebar(items, current_route, self.config.site.base_url)

    def route_for(self, request_path: str) -> str | None:
        """Strip the configured base URL from *request_path*.

        Returns None for paths outside the base.
        """
        base = self.config.site.base_url
        if base == "/":
            return request_path
        if request_path == base.rstrip("/"):
            return "/"
        if not request_path.startswith(base):
            return None
        return "/" + request_path[len(base):]

    def render(self, request_path: str) -> tuple[int, str]:
        """Return (status_code, html) for a request path."""
        route = self.route_for(request_path)
        if route is not None and route != "/" and route.endswith("/"):
            route = route[:-1]

        doc = None
        if route is not None and not _CONFIG_LIKE_RE.search(route):
            doc = self.index.get(route)
        sidebar = self.sidebar_html(route)
        if doc is None:
            return 404, render_not_found(request_path, sidebar, self.config, is_dev=True)
        return 200, render_page(doc, sidebar, self.config, is_dev=True)


class LiveReloadHub:
    """Connected browser tabs waiting for reload notifications."""

    def __init__(self):
        self.clients: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        logger.info("LiveReload client connected")
        await websocket.send_json({"type": "connected", "message": "LiveReload ready"})

    def disconnect(self, websocket: WebSocket) -> None:
        self.clients.discard(websocket)
        logger.info("LiveReload client disconnected")

    async def broadcast_reload(self) -> None:
        message = {"type": "reload", "timestamp": int(time.time() * 1000)}
        logger.debug("Broadcasting reload to %d clients", len(self.clients))
        for websocket in list(self.clients):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                self.disconnect(websocket)


async def process_events(site: DocsSite, hub: LiveReloadHub, events: list[FileEvent]) -> None:
    """Apply each event to the index, then tell browsers to reload.

    File reads run in a worker thread, one event at a time, so the index
    keeps a single writer while the loop keeps serving requests.
    """
    for event in events:
        logger.info("File %s: %s", event.kind, event.path)
        await asyncio.to_thread(site.apply, event)
        await hub.broadcast_reload()


async def _watch_loop(site: DocsSite, hub: LiveReloadHub, stop_event: asyncio.Event) -> None:
    async for events in watch_content(
        site.docs_dir, site.config.ignore, index=site.index, stop_event=stop_event,
    ):
        await process_events(site, hub, events)


def create_app(docs_dir: Path, *, watch: bool = True) -> FastAPI:
    """Build the dev-server app for *docs_dir*.

    The index is built at startup; with *watch*, file changes update it
    and trigger a reload broadcast.
    """
    site = DocsSite(docs_dir)
    hub = LiveReloadHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        site.rebuild()
        logger.info("Indexed %d documents from %s", len(site.index), site.docs_dir)

        stop_event = asyncio.Event()
        watch_task = None
        if watch:
            watch_task = asyncio.create_task(_watch_loop(site, hub, stop_event))
        yield
        stop_event.set()
        if watch_task is not None:
            await watch_task

    app = FastAPI(
        title="markrealm dev server",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.site = site
    app.state.hub = hub
    base = site.config.site.base_url

    @app.get(f"{base}styles.css", include_in_schema=False)
    async def styles() -> FileResponse:
        return FileResponse(static_file("styles.css"), media_type="text/css")

    @app.get(f"{base}reload-client.js", include_in_schema=False)
    async def reload_client() -> FileResponse:
        return FileResponse(static_file("reload-client.js"), media_type="application/javascript")

    @app.websocket(LIVERELOAD_PATH)
    async def livereload(websocket: WebSocket) -> None:
        await hub.connect(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            hub.disconnect(websocket)

    @app.get("/{full_path:path}", response_class=HTMLResponse, include_in_schema=False)
    async def page(full_path: str) -> HTMLResponse:
        status_code, html = site.render(f"/{full_path}")
        return HTMLResponse(html, status_code=status_code)

    return app


def run_dev_server(docs_dir: Path, port: int, *, host: str = "127.0.0.1") -> None:
    """Serve *docs_dir* until interrupted."""
    import uvicorn

    app = create_app(docs_dir)
    logger.info("Server running at http://localhost:%d", port)
    uvicorn.run(app, host=host, port=port, log_level="info")
