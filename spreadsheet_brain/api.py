# spreadsheet_brain/api.py
import asyncio
import logging
from typing import Any

import networkx as nx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import BaseModel
from pyvis.network import Network

from .brain import SpreadsheetBrain
from .commands import UPDATE_CELL, CommandDescriptor
from .errors import SnapshotFetchError
from .model import CellNode, EdgeKind
from .query_engine import QueryResult, execute_command

logger = logging.getLogger(__name__)


class Instruction(BaseModel):
    instruction: str


class QueryResponse(BaseModel):
    success: bool
    message: str
    data: Any = None


def _jsonable(data):
    if isinstance(data, (set, frozenset)):
        return sorted(data)
    if isinstance(data, list):
        return [_jsonable(d) for d in data]
    if isinstance(data, CellNode):
        return _cell_json(data)
    return data


def _cell_json(cell: CellNode) -> dict:
    return {
        "id": cell.id,
        "sheet": cell.sheet_id,
        "a1": cell.a1_notation,
        "value": cell.value,
        "formula": cell.formula,
    }


def _response(result: QueryResult) -> QueryResponse:
    return QueryResponse(success=result.success, message=result.message, data=_jsonable(result.data))


class UpdateListeners:
    """SSE subscribers; safe to notify from any thread."""

    def __init__(self):
        self._queues: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

    def __len__(self):
        return len(self._queues)

    def add(self, loop, q):
        self._queues.append((loop, q))

    def remove(self, loop, q):
        self._queues.remove((loop, q))

    def broadcast(self, msg: str = "reload"):
        print(f"📣 Broadcasting {msg} to {len(self._queues)} listener(s)")
        for loop, q in list(self._queues):
            try:
                loop.call_soon_threadsafe(q.put_nowait, msg)
            except RuntimeError as e:
                print("❌ Failed to notify a listener:", e)


def create_app(brain: SpreadsheetBrain, translator) -> FastAPI:
    app = FastAPI(title="Spreadsheet Brain API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_methods=["*"], allow_headers=["*"],
    )
    listeners = UpdateListeners()
    app.state.brain = brain
    app.state.update_listeners = listeners

    @app.get("/summary")
    def summary():
        s = brain.summary()
        return {
            "cellCount": s.cell_count,
            "sheetCount": s.sheet_count,
            "formulaCount": s.formula_count,
            "edgeCount": s.edge_count,
        }

    @app.get("/sheets")
    def sheets():
        return {"sheets": brain.sheet_names(), "active": brain.active_sheet}

    @app.get("/formulas")
    def formulas():
        return {"formulas": [_cell_json(c) for c in brain.formula_cells()]}

    @app.get("/dependencies")
    def dependencies(cell: str):
        """Everything `cell` depends on, directly or transitively."""
        return {"cell": cell, "dependencies": sorted(brain.dependencies_of(cell))}

    @app.get("/impact")
    def impact(cell: str):
        """Every cell whose value changes when `cell` changes."""
        return {"cell": cell, "dependents": sorted(brain.dependents_of(cell))}

    @app.post("/run", response_model=QueryResponse)
    def run(cmd: Instruction):
        """
        Natural language → command descriptor → result.
        """
        if not cmd.instruction.strip():
            raise HTTPException(400, detail="Empty instruction")
        descriptor = translator.translate(cmd.instruction, brain)
        result = execute_command(descriptor, brain)
        if result.success and descriptor.command == UPDATE_CELL:
            listeners.broadcast()
        return _response(result)

    @app.post("/command", response_model=QueryResponse)
    def command(descriptor: CommandDescriptor):
        return _response(execute_command(descriptor, brain))

    @app.post("/reload")
    def reload():
        try:
            brain.reload()
        except SnapshotFetchError as e:
            logger.error(f"Reload failed: {e}")
            raise HTTPException(502, detail=str(e))
        listeners.broadcast()
        return {"status": "✅ reloaded", "summary": str(brain.summary())}

    @app.get("/events")
    async def events():
        async def event_stream():
            loop = asyncio.get_running_loop()
            q: asyncio.Queue = asyncio.Queue()
            listeners.add(loop, q)
            print("👂  New SSE client connected…", len(listeners), "listeners")
            try:
                while True:
                    msg = await q.get()
                    yield f"data: {msg}\n\n"
            except asyncio.CancelledError:
                pass
            finally:
                listeners.remove(loop, q)

        return StreamingResponse(event_stream(), media_type="text/event-stream")

    @app.post("/notify_update")
    def notify_update():
        listeners.broadcast()
        return {"ok": True}

    @app.get("/graph", response_class=HTMLResponse)
    def graph_view():
        """
        Render the DEPENDS_ON graph as a pyvis HTML page.
        """
        graph = brain.graph
        G = nx.DiGraph()
        for src, dst in graph.edges(EdgeKind.DEPENDS_ON):
            G.add_node(src, title=graph.get(src).display_name)
            G.add_node(dst, title=graph.get(dst).display_name)
            G.add_edge(src, dst)

        net = Network(
            height="750px",
            width="100%",
            directed=True,
            notebook=False,
            bgcolor="#ffffff",
            font_color="#000000",
        )
        net.from_nx(G)
        for node in net.nodes:
            node["size"] = 20
            node["label"] = node["id"]

        html = net.generate_html()
        html = (
            html
            .replace(
                '<link rel="stylesheet" href="/lib/vis-network.min.css">',
                '<link rel="stylesheet" '
                'href="https://cdnjs.cloudflare.com/ajax/libs/vis-network/9.1.2/vis-network.min.css">'
            )
            .replace(
                '<script src="/lib/vis-network.min.js"></script>',
                '<script src="https://cdnjs.cloudflare.com/ajax/libs/vis-network/9.1.2/vis-network.min.js"></script>'
            )
            .replace('<script src="/lib/bindings/utils.js"></script>', '')
        )
        reload_js = """
          <script>
            const es = new EventSource("/events");
            es.onmessage = () => window.location.reload();
          </script>
        """
        return HTMLResponse(html.replace("</body>", reload_js + "</body>"))

    return app
