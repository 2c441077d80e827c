"""
FastAPI server for the checkers engine.

Provides REST and WebSocket APIs for game management and computer play.
"""

from __future__ import annotations
import logging
import math
import time
import uuid
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from checkers import api
from checkers.core.state import GameState
from checkers.core.board import NUM_SQUARES
from checkers.core.notation import GameRecord, move_to_algebraic, parse_chain
from checkers.ai.players import Player, PlayerKind
from checkers.ai.selector import MoveSelector

from . import persistence

VERSION = "0.1.0"


# --- Pydantic Models ---

class CreateGameRequest(BaseModel):
    black_type: str = "human"
    white_type: str = "computer"
    seed: Optional[int] = None


class CreateGameResponse(BaseModel):
    game_id: str


class BoardState(BaseModel):
    squares: list[int]  # Occupant code per square index
    grid: list[list[int]]  # 8x8, [y][x], light squares = -1
    black_pieces: int
    white_pieces: int


class LegalMove(BaseModel):
    start: int
    end: int
    algebraic: str
    capture: bool


class GameStateResponse(BaseModel):
    game_id: str
    board: BoardState
    black_to_move: bool
    pending_capture_index: Optional[int]
    black_type: str
    white_type: str
    legal_moves: list[LegalMove]
    status: str
    winner: Optional[str]
    ply: int
    state: str


class MakeMoveRequest(BaseModel):
    start: Optional[int] = None
    end: Optional[int] = None
    move: Optional[str] = None  # "c6-d5", "f3xd5xb7" or "8-12"


class ComputerMoveRequest(BaseModel):
    full_turn: bool = True  # Keep going until the capture chain ends


class ScoredMove(BaseModel):
    start: int
    end: int
    algebraic: str
    capture: bool
    weight: float


class ComputerMoveResponse(BaseModel):
    moves: list[LegalMove]
    time_ms: int
    top_moves: list[ScoredMove]
    game_state: GameStateResponse


class LegalMovesResponse(BaseModel):
    moves: list[LegalMove]


class StateRequest(BaseModel):
    state: str


class StateResponse(BaseModel):
    game_id: str
    state: str


class PdnResponse(BaseModel):
    game_id: str
    pdn: str


class HealthResponse(BaseModel):
    status: str
    version: str


# --- Game Storage ---

def _legal_move(start: int, end: int) -> LegalMove:
    algebraic = move_to_algebraic((start, end))
    return LegalMove(start=start, end=end, algebraic=algebraic, capture='x' in algebraic)


class Game:
    """Represents an active game session."""

    def __init__(
        self,
        game_id: str,
        black_type: str = "human",
        white_type: str = "computer",
        seed: Optional[int] = None
    ):
        self.game_id = game_id
        self.state = GameState.new_game()
        self.setup = self.state.get_game_state()
        self.selector = MoveSelector(seed=seed)
        self.players = {
            True: Player(PlayerKind.parse(black_type), self.selector),
            False: Player(PlayerKind.parse(white_type), self.selector),
        }
        self.websockets: list[WebSocket] = []

    @property
    def black_type(self) -> str:
        return self.players[True].kind.value

    @property
    def white_type(self) -> str:
        return self.players[False].kind.value

    def player_to_move(self) -> Player:
        return self.players[self.state.black_to_move]

    def to_response(self) -> GameStateResponse:
        """Convert to API response."""
        board = api.get_board_snapshot(self.state)
        status = "finished" if api.is_game_over(self.state) else "playing"

        return GameStateResponse(
            game_id=self.game_id,
            board=BoardState(
                squares=[board.get(i) for i in range(NUM_SQUARES)],
                grid=board.to_array().tolist(),
                black_pieces=board.count_side(True),
                white_pieces=board.count_side(False)
            ),
            black_to_move=self.state.black_to_move,
            pending_capture_index=api.pending_capture_index(self.state),
            black_type=self.black_type,
            white_type=self.white_type,
            legal_moves=[_legal_move(m.start_index, m.end_index) for m in self.state.legal_moves()],
            status=status,
            winner=self.state.get_winner(),
            ply=self.state.ply,
            state=api.get_game_state(self.state)
        )

    def record(self) -> GameRecord:
        return GameRecord.from_state(
            self.state,
            black=f"Black ({self.black_type})",
            white=f"White ({self.white_type})"
        )


# Global game storage
games: dict[str, Game] = {}


def get_game_or_404(game_id: str) -> Game:
    if game_id not in games:
        raise HTTPException(status_code=404, detail="Game not found")
    return games[game_id]


def apply_moves(game: Game, moves: list[tuple[int, int]]) -> bool:
    """
    Play a sequence of moves (one hop per capture) atomically.

    On an illegal move, everything played so far is taken back.
    """
    played = 0
    for start, end in moves:
        if not game.state.move(start, end):
            for _ in range(played):
                game.state.undo_move()
            return False
        played += 1

    persistence.save_game(game.game_id, game.state)
    for start, end in moves:
        persistence.append_move(game.game_id, start, end)
    return True


def play_computer_turn(game: Game, full_turn: bool = True) -> list[tuple[int, int]]:
    """Let the automated player move, continuing capture chains if asked."""
    black = game.state.black_to_move
    played = []
    while not api.is_game_over(game.state) and game.state.black_to_move == black:
        move = game.selector.choose(game.state)
        if move is None or not game.state.move(move.start_index, move.end_index):
            break
        played.append((move.start_index, move.end_index))
        if not full_turn:
            break

    if played:
        persistence.save_game(game.game_id, game.state)
        for start, end in played:
            persistence.append_move(game.game_id, start, end)
    return played


def reset_persisted(game: Game) -> None:
    """Store a new starting position with an empty move list."""
    game.setup = game.state.get_game_state()
    persistence.save_game(
        game_id=game.game_id,
        state=game.state,
        black_type=game.black_type,
        white_type=game.white_type,
        setup=game.setup,
        moves=[]
    )


# --- App Setup ---

@asynccontextmanager
async def lifespan(app: FastAPI):
    """App lifespan handler."""
    # Startup: initialize database and load existing games
    persistence.init_db()
    persistence.cleanup_old_games(max_age_days=7)

    for game_data in persistence.load_all_games():
        game = Game(
            game_id=game_data["game_id"],
            black_type=game_data["black_type"],
            white_type=game_data["white_type"]
        )
        game.state = game_data["state"]
        game.setup = game_data["setup"]
        games[game.game_id] = game
        logging.info(f"Loaded game {game.game_id} from database")

    logging.info(f"Loaded {len(games)} games from database")

    yield

    # Shutdown: nothing to do (games are persisted on each change)
    games.clear()


app = FastAPI(
    title="Checkers Engine",
    description="Game engine API for checkers",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- REST Endpoints ---

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=VERSION)


@app.post("/games", response_model=CreateGameResponse)
async def create_game(request: CreateGameRequest = None):
    """Create a new game."""
    if request is None:
        request = CreateGameRequest()

    game_id = str(uuid.uuid4())[:8]
    try:
        game = Game(
            game_id=game_id,
            black_type=request.black_type,
            white_type=request.white_type,
            seed=request.seed
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    games[game_id] = game

    reset_persisted(game)
    logging.info(f"Created game {game_id} ({game.black_type} vs {game.white_type})")

    return CreateGameResponse(game_id=game_id)


@app.get("/games/{game_id}", response_model=GameStateResponse)
async def get_game(game_id: str):
    """Get current game state."""
    return get_game_or_404(game_id).to_response()


@app.post("/games/{game_id}/move", response_model=GameStateResponse)
async def make_move(game_id: str, request: MakeMoveRequest):
    """Make a move in the game, by square indices or in notation."""
    game = get_game_or_404(game_id)

    if api.is_game_over(game.state):
        raise HTTPException(status_code=409, detail="Game already finished")

    if request.move is not None:
        try:
            moves = parse_chain(request.move)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid move notation: {request.move}")
    elif request.start is not None and request.end is not None:
        moves = [(request.start, request.end)]
    else:
        raise HTTPException(status_code=400, detail="Provide either 'move' or 'start' and 'end'")

    if not apply_moves(game, moves):
        raise HTTPException(status_code=400, detail="Invalid move")

    response = game.to_response()
    await broadcast_state(game, response)

    return response


@app.post("/games/{game_id}/computer", response_model=ComputerMoveResponse)
async def computer_move(game_id: str, request: ComputerMoveRequest = None):
    """Let the automated player make its move."""
    if request is None:
        request = ComputerMoveRequest()

    game = get_game_or_404(game_id)

    if api.is_game_over(game.state):
        raise HTTPException(status_code=409, detail="Game already finished")
    if game.player_to_move().is_human:
        raise HTTPException(status_code=409, detail="Side to move is not played by the computer")

    start_time = time.time()
    analysis = game.selector.analyze(game.state, top_k=5)
    played = play_computer_turn(game, request.full_turn)
    elapsed_ms = int((time.time() - start_time) * 1000)

    top_moves = [
        ScoredMove(
            start=m['start'],
            end=m['end'],
            algebraic=move_to_algebraic((m['start'], m['end'])),
            capture=m['capture'],
            weight=m['weight']
        )
        for m in analysis
        if math.isfinite(m['weight'])
    ]

    game_response = game.to_response()
    await broadcast_state(game, game_response)

    return ComputerMoveResponse(
        moves=[_legal_move(start, end) for start, end in played],
        time_ms=elapsed_ms,
        top_moves=top_moves,
        game_state=game_response
    )


@app.get("/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
async def get_legal_moves_endpoint(game_id: str):
    """Get all legal moves in human-readable format."""
    game = get_game_or_404(game_id)
    return LegalMovesResponse(
        moves=[_legal_move(m.start_index, m.end_index) for m in game.state.legal_moves()]
    )


@app.post("/games/{game_id}/undo", response_model=GameStateResponse)
async def undo_move(game_id: str):
    """Undo the last move."""
    game = get_game_or_404(game_id)

    if not game.state.undo_move():
        raise HTTPException(status_code=400, detail="Nothing to undo")

    persistence.save_game(game_id, game.state)
    persistence.pop_move(game_id)

    response = game.to_response()
    await broadcast_state(game, response)

    return response


@app.post("/games/{game_id}/restart", response_model=GameStateResponse)
async def restart_game(game_id: str):
    """Reset the game to the starting position."""
    game = get_game_or_404(game_id)

    api.restart(game.state)
    reset_persisted(game)

    response = game.to_response()
    await broadcast_state(game, response)

    return response


@app.get("/games/{game_id}/state", response_model=StateResponse)
async def get_state(game_id: str):
    """Get the position as a text snapshot."""
    game = get_game_or_404(game_id)
    return StateResponse(game_id=game_id, state=api.get_game_state(game.state))


@app.put("/games/{game_id}/state", response_model=GameStateResponse)
async def put_state(game_id: str, request: StateRequest):
    """Replace the position from a text snapshot. Move history starts over."""
    game = get_game_or_404(game_id)

    api.set_game_state(game.state, request.state)
    reset_persisted(game)

    response = game.to_response()
    await broadcast_state(game, response)

    return response


@app.get("/games/{game_id}/pdn", response_model=PdnResponse)
async def get_pdn(game_id: str):
    """Export the game record."""
    game = get_game_or_404(game_id)
    return PdnResponse(game_id=game_id, pdn=game.record().to_pdn())


# --- WebSocket ---

async def broadcast_state(game: Game, state: GameStateResponse):
    """Broadcast state update to all connected clients."""
    message = {
        "type": "state",
        "data": state.model_dump()
    }
    disconnected = []
    for ws in game.websockets:
        try:
            await ws.send_json(message)
        except Exception:
            disconnected.append(ws)

    for ws in disconnected:
        game.websockets.remove(ws)


async def send_error(ws: WebSocket, message: str, code: str):
    """Send error message to client."""
    await ws.send_json({
        "type": "error",
        "data": {"message": message, "code": code}
    })


async def send_game_over(ws: WebSocket, game: Game):
    if api.is_game_over(game.state):
        await ws.send_json({
            "type": "game_over",
            "data": {"winner": game.state.get_winner()}
        })


@app.websocket("/games/{game_id}/ws")
async def websocket_endpoint(websocket: WebSocket, game_id: str):
    """WebSocket endpoint for real-time game updates."""
    if game_id not in games:
        await websocket.close(code=4004, reason="Game not found")
        return

    game = games[game_id]
    await websocket.accept()
    game.websockets.append(websocket)

    # Send initial state
    await websocket.send_json({
        "type": "state",
        "data": game.to_response().model_dump()
    })

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type")
            payload = data.get("data", {})

            if msg_type == "move":
                if api.is_game_over(game.state):
                    await send_error(websocket, "Game already finished", "GAME_FINISHED")
                    continue

                try:
                    if "move" in payload:
                        moves = parse_chain(payload["move"])
                    else:
                        moves = [(int(payload["start"]), int(payload["end"]))]
                except (KeyError, TypeError, ValueError):
                    await send_error(websocket, "Move not specified", "INVALID_REQUEST")
                    continue

                if not apply_moves(game, moves):
                    await send_error(websocket, "Invalid move", "INVALID_MOVE")
                    continue

                await broadcast_state(game, game.to_response())
                await send_game_over(websocket, game)

            elif msg_type == "computer":
                if api.is_game_over(game.state):
                    await send_error(websocket, "Game already finished", "GAME_FINISHED")
                    continue
                if game.player_to_move().is_human:
                    await send_error(websocket, "Side to move is not played by the computer", "NOT_AUTOMATED")
                    continue

                play_computer_turn(game, payload.get("full_turn", True))
                await broadcast_state(game, game.to_response())
                await send_game_over(websocket, game)

            elif msg_type == "undo":
                if not game.state.undo_move():
                    await send_error(websocket, "Nothing to undo", "INVALID_REQUEST")
                    continue

                persistence.save_game(game_id, game.state)
                persistence.pop_move(game_id)
                await broadcast_state(game, game.to_response())

            else:
                await send_error(websocket, f"Unknown message type: {msg_type}", "INVALID_REQUEST")

    except WebSocketDisconnect:
        pass
    finally:
        if websocket in game.websockets:
            game.websockets.remove(websocket)


# --- Entry Point ---

def run_server(host: str = "0.0.0.0", port: int = 8000):
    """Run the server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
