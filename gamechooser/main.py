import logging
from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from . import models
from .exceptions import Forbidden, GameChooserException, InvalidInput, NoCandidates, NotFound
from .manager import RoomManager

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Game Chooser API",
    description="Vote with friends on which game to play",
    version="0.1.0",
)


class ConnectionManager:
    def __init__(self) -> None:
        self.active: Dict[str, List[WebSocket]] = {}

    async def connect(self, code: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active.setdefault(code.upper(), []).append(websocket)

    def disconnect(self, code: str, websocket: WebSocket) -> None:
        connections = self.active.get(code.upper(), [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active.pop(code.upper(), None)

    async def broadcast(self, code: str, message: dict) -> None:
        for connection in list(self.active.get(code.upper(), [])):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping WebSocket in room {code.upper()} after failed send: {e}")
                self.disconnect(code, connection)


connections = ConnectionManager()
room_manager = RoomManager()


def get_manager() -> RoomManager:
    return room_manager


def http_error(exc: GameChooserException) -> HTTPException:
    if isinstance(exc, NotFound):
        status = 404
    elif isinstance(exc, InvalidInput):
        status = 400
    elif isinstance(exc, Forbidden):
        status = 403
    elif isinstance(exc, NoCandidates):
        status = 409
    else:
        status = 400
    return HTTPException(status_code=status, detail=str(exc))


async def push_snapshot(manager: RoomManager, code: str) -> None:
    snapshot = manager.snapshot(code)
    await connections.broadcast(code, snapshot.model_dump(mode="json", by_alias=True))


@app.get("/")
def root():
    return {"message": "Game Chooser API is running", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.post("/rooms", response_model=models.RoomCreated, status_code=201)
def create_room(body: models.RoomCreate, manager: RoomManager = Depends(get_manager)):
    try:
        room = manager.create_room(body.games, host_name=body.host_name)
    except GameChooserException as e:
        raise http_error(e) from e
    return models.RoomCreated(
        room_id=room.id, join_code=room.join_code, host_id=room.host_id, games=room.games
    )


@app.post("/rooms/join", response_model=models.RoomJoined, status_code=201)
async def join_room(body: models.RoomJoin, manager: RoomManager = Depends(get_manager)):
    try:
        room, participant = manager.join_room(body.join_code, body.name)
    except GameChooserException as e:
        raise http_error(e) from e
    await push_snapshot(manager, room.join_code)
    return models.RoomJoined(room_id=room.id, join_code=room.join_code, participant=participant)


@app.get("/rooms/{code}", response_model=models.RoomSnapshot)
def get_room(code: str, manager: RoomManager = Depends(get_manager)):
    try:
        return manager.snapshot(code)
    except GameChooserException as e:
        raise http_error(e) from e


@app.post("/rooms/{code}/games", response_model=models.Game, status_code=201)
async def add_game(code: str, body: models.GameIn, manager: RoomManager = Depends(get_manager)):
    try:
        game = manager.add_game(code, body.title, body.description)
    except GameChooserException as e:
        raise http_error(e) from e
    await push_snapshot(manager, code)
    return game


@app.post("/rooms/{code}/vote", response_model=models.TallyOut)
async def submit_vote(code: str, body: models.VoteIn, manager: RoomManager = Depends(get_manager)):
    try:
        counts = manager.cast_vote(code, body.participant_id, body.game_id, body.type)
    except GameChooserException as e:
        raise http_error(e) from e
    await push_snapshot(manager, code)
    return models.TallyOut(votes=counts)


@app.post("/rooms/{code}/start", response_model=models.SelectionOut)
async def start_selection(code: str, body: models.StartIn, manager: RoomManager = Depends(get_manager)):
    try:
        game, counts = manager.start_selection(code, body.participant_id)
    except GameChooserException as e:
        raise http_error(e) from e
    await push_snapshot(manager, code)
    return models.SelectionOut(game=game, votes=counts)


@app.websocket("/rooms/{code}/ws")
async def room_ws(code: str, websocket: WebSocket, manager: RoomManager = Depends(get_manager)) -> None:
    try:
        snapshot = manager.snapshot(code)
    except NotFound:
        await websocket.close(code=4404)
        return
    await connections.connect(code, websocket)
    logger.info(f"WebSocket connected to room {snapshot.join_code}")
    await websocket.send_json(snapshot.model_dump(mode="json", by_alias=True))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        connections.disconnect(code, websocket)
