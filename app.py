# app.py
import logging
import random
from typing import Optional
from urllib.parse import quote

from flask import Flask, Response, abort, current_app, jsonify, render_template, request, url_for

from config import Config
from frames import MOVE_ACTION, NEW_GAME, Button, Frame, pack_values, parse_move_request, pressed_value
from game_logic import (
    CellTakenError, GameOverError, NoMovesAvailableError, OpponentPolicy,
    available_moves, coordinate, describe_turn, new_position, play_turn,
)
from services import InMemoryStatsStore, ProfileLookup, StaticProfileLookup, StatsStore
from state_codec import DecodeError, decode, decode_or_new, encode

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SHARE_TEXT = "Think you can win a game of Tic-Tac-Toe? Play right here in the frame."
MAX_MESSAGE_LENGTH = 200


def create_app(config: Optional[Config] = None,
               stats_store: Optional[StatsStore] = None,
               profiles: Optional[ProfileLookup] = None,
               rng: Optional[random.Random] = None) -> Flask:
    """
    Build the frame service. Collaborators are created here once and shared by
    all requests; tests pass their own store, profiles and random source.
    """
    config = config or Config.from_env()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    app = Flask(__name__)
    rng = rng if rng is not None else random.Random()
    app.extensions["tictactoe"] = {
        "config": config,
        "stats": stats_store if stats_store is not None else InMemoryStatsStore(),
        "profiles": profiles if profiles is not None else StaticProfileLookup(config.default_username),
        "policy": OpponentPolicy(config.mistake_rate, config.center_rate, rng=rng),
        "rng": rng,
    }
    register_routes(app)
    logger.info("Tic-Tac-Toe frame service ready at %s", config.base_url)
    return app


def _services() -> dict:
    return current_app.extensions["tictactoe"]


def _url(endpoint: str, **params) -> str:
    """Absolute URL as seen by frame clients."""
    return _services()["config"].base_url + url_for(endpoint, **params)


def _frame_request():
    """(fid, pressed button value) from a frame POST body."""
    body = request.get_json(silent=True) or {}
    data = body.get("untrustedData") if isinstance(body, dict) else None
    if not isinstance(data, dict):
        data = {}
    value = pressed_value(request.args.get("values"), data.get("buttonIndex"))
    return data.get("fid"), value


def render_frame(frame: Frame) -> Response:
    html = render_template("frame.html", frame=frame)
    return Response(html, mimetype="text/html")


def register_routes(app: Flask) -> None:

    @app.route("/api", methods=["GET", "POST"])
    def landing():
        cfg = _services()["config"]
        return render_frame(Frame(
            title="Tic-Tac-Toe Game",
            image=cfg.landing_image_url,
            post_url=_url("how_to_play"),
            buttons=[Button("Start")],
            description="Start New Game or Share!",
        ))

    @app.route("/api/howtoplay", methods=["GET", "POST"])
    def how_to_play():
        cfg = _services()["config"]
        return render_frame(Frame(
            title="How to Play Tic-Tac-Toe",
            image=cfg.howto_image_url,
            post_url=_url("game"),
            buttons=[Button("Start Game")],
        ))

    @app.route("/api/game", methods=["GET", "POST"])
    def game():
        svc = _services()
        cfg = svc["config"]
        fid, value = _frame_request()
        username = svc["profiles"].get_username(fid)

        position = new_position(cfg.default_difficulty)
        message = f"New game started! Your turn, {username}"

        move = parse_move_request(request.args.get("action"), request.args.get("state"), value)
        if move is not None:
            try:
                previous = decode(move.token)
            except DecodeError as exc:
                logger.warning("Bad state token from fid %s, starting over: %s", fid, exc)
                previous = None
            if previous is not None:
                position = previous
                try:
                    result = play_turn(previous, move.index, svc["policy"])
                except CellTakenError:
                    message = "That spot is already taken! Choose another."
                except GameOverError:
                    message = "Game is over. Start a new game!"
                except NoMovesAvailableError:
                    logger.exception("Opponent asked to move on a full board: %s", move.token)
                    abort(500)
                else:
                    position = result.position
                    message = describe_turn(result, username)
                    logger.info("fid %s played %d, computer replied %s, outcome %s",
                                fid, move.index, result.machine_move, result.outcome)
                    if result.outcome is not None and fid:
                        _record_result(svc["stats"], fid, result.outcome)
        else:
            logger.info("New game for fid %s", fid)

        token = encode(position)
        if position.terminal:
            buttons = [
                Button("New Game", NEW_GAME),
                Button("Your Stats", "stats", target=_url("share")),
            ]
            post_url = _url("game", values=pack_values(buttons))
        else:
            moves = available_moves(position)
            svc["rng"].shuffle(moves)
            buttons = [Button(coordinate(i), str(i)) for i in moves[:4]]
            post_url = _url("game", action=MOVE_ACTION, state=token, values=pack_values(buttons))

        return render_frame(Frame(
            title="Tic-Tac-Toe Game",
            image=_url("board_image", state=token, message=message[:MAX_MESSAGE_LENGTH]),
            post_url=post_url,
            buttons=buttons,
            description=message,
        ))

    @app.route("/api/share", methods=["GET", "POST"])
    def share():
        fid, _ = _frame_request()
        landing_url = _url("landing")
        compose = ("https://warpcast.com/~/compose?text=" + quote(SHARE_TEXT, safe="")
                   + "&embeds[]=" + quote(landing_url, safe=""))
        return render_frame(Frame(
            title="Thanks for Playing!",
            image=_url("stats_image", fid=fid or ""),
            post_url=_url("game"),
            buttons=[
                Button("Play Again", target=_url("game")),
                Button("Share Game", action="link", target=compose),
            ],
        ))

    @app.route("/api/board.svg")
    def board_image():
        svc = _services()
        position = decode_or_new(request.args.get("state"), svc["config"].default_difficulty)
        message = request.args.get("message", "")[:MAX_MESSAGE_LENGTH]
        svg = render_template("board.svg", cells=position.cells, message=message)
        return Response(svg, mimetype="image/svg+xml")

    @app.route("/api/stats.svg")
    def stats_image():
        svc = _services()
        fid = request.args.get("fid", "")
        record = svc["stats"].get_record(fid) if fid else None
        svg = render_template("stats.svg", record=record,
                              username=svc["profiles"].get_username(fid))
        return Response(svg, mimetype="image/svg+xml")

    @app.route("/healthz")
    def healthz():
        return jsonify({"status": "ok"})


def _record_result(stats: StatsStore, fid, outcome: str) -> None:
    try:
        stats.record_result(str(fid), outcome)
    except Exception:
        logger.exception("Could not record %s for fid %s", outcome, fid)


app = create_app()

if __name__ == "__main__":
    # Use debug only during development
    app.run(debug=True)
