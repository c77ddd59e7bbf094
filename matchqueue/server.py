"""Matchmaking server: client logins, per-game queues and match start-up."""

from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .games import GameSpec, load_games

log = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_GAMES_FILE = "games.txt"
RECV_SIZE = 1023

LOGGED_IN = '{"message": "logged in"}'
ENQUEUED = '{"message" : "enqueued"}'
LOGIN_FAILED = '{"error": "login failed"}'
NOT_A_LOGIN = '{"error": "server side json parsing failed"}'
UNKNOWN_ACTION = '{"error": "unable to interpret sent action"}'
UNKNOWN_MESSAGE = '{"error": "unable to interpret sent message"}'
IN_GAME = '{"message": "in game and is ongoing" }'


def attempt_login(username: str, password: str) -> bool:
    """Check credentials: any pair of strings is accepted."""
    return isinstance(username, str) and isinstance(password, str)


@dataclass(frozen=True)
class Player:
    """A queued client: its id and the connection used to reach it."""

    client_id: int
    connection: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class Match:
    """A group of players taken from one game's queue."""

    game_id: int
    game_index: int
    players: tuple[Player, ...]


class Matchmaker:
    """One FIFO queue per game type, drained into matches."""

    def __init__(self, games: Iterable[GameSpec]):
        self.games = list(games)
        self._queues: list[deque[Player]] = [deque() for _ in self.games]
        self._lock = threading.Lock()
        self._next_game_id = 0

    def _check_index(self, game_index: int) -> None:
        if not 0 <= game_index < len(self.games):
            raise IndexError(f"no game with index {game_index}")

    def enqueue(self, game_index: int, player: Player) -> None:
        """Add ``player`` to the back of a game's queue."""
        self._check_index(game_index)
        with self._lock:
            self._queues[game_index].append(player)

    def queue_length(self, game_index: int) -> int:
        """Number of players waiting for a game."""
        self._check_index(game_index)
        with self._lock:
            return len(self._queues[game_index])

    def match_once(self) -> list[Match]:
        """Make one pass over all queues and return the matches formed.

        A queue holding at least the game's minimum is drained from the front
        while the group has no more than the game's maximum, so a group may
        end up one player beyond that maximum.
        """
        matches = []
        with self._lock:
            for index, (spec, queue) in enumerate(zip(self.games, self._queues)):
                if len(queue) < spec.min_players:
                    continue
                players: list[Player] = []
                while len(players) <= spec.max_players and queue:
                    players.append(queue.popleft())
                if len(players) >= spec.min_players:
                    matches.append(Match(self._next_game_id, index, tuple(players)))
                    self._next_game_id += 1
        return matches


class _RejectedMessage(ValueError):
    """Valid JSON whose values have the wrong type or range."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _dump(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


class ClientSession:
    """Protocol state of one connected client."""

    def __init__(self, client_id: int, matchmaker: Matchmaker):
        self.client_id = client_id
        self.matchmaker = matchmaker
        self.logged_in = False
        self.connection: Any = None

    def handle(self, text: str) -> tuple[Optional[str], Optional[str]]:
        """Process one received message.

        Returns ``(reply, broadcast)``: the reply goes back to this client, the
        broadcast to every other client. Either may be ``None``.
        """
        try:
            payload = json.loads(text, parse_constant=_reject_constant)
        except ValueError as exc:
            log.error("Failed to parse JSON from Client %d: %s", self.client_id, exc)
            return None, None
        try:
            if self.logged_in:
                reply = self._handle_request(payload)
                return reply, f"[Client {self.client_id}] sent JSON: {_dump(payload)}"
            return self._handle_login(payload), None
        except _RejectedMessage as exc:
            log.error("Failed to parse JSON from Client %d: %s", self.client_id, exc)
            return None, None

    def _handle_login(self, payload: Any) -> str:
        if not (isinstance(payload, dict) and "username" in payload and "password" in payload):
            return NOT_A_LOGIN
        username, password = payload["username"], payload["password"]
        if not isinstance(username, str) or not isinstance(password, str):
            raise _RejectedMessage("username and password must be strings")
        if not attempt_login(username, password):
            return LOGIN_FAILED
        self.logged_in = True
        return LOGGED_IN

    def _handle_request(self, payload: Any) -> str:
        if not isinstance(payload, dict) or "action" not in payload:
            return UNKNOWN_MESSAGE
        action = payload["action"]
        if not isinstance(action, str):
            raise _RejectedMessage("action must be a string")
        if action != "enqueue" or "gametype" not in payload:
            return UNKNOWN_ACTION
        game_index = self._game_index(payload["gametype"])
        try:
            spec = self.matchmaker.games[game_index] if game_index >= 0 else None
            if spec is None:
                raise IndexError(game_index)
            log.info("Enqueuing Client %d to game %s", self.client_id, spec.name)
            self.matchmaker.enqueue(game_index, Player(self.client_id, self.connection))
        except IndexError as exc:
            raise _RejectedMessage(f"unknown game type {game_index}") from exc
        return ENQUEUED

    @staticmethod
    def _game_index(value: Any) -> int:
        if not isinstance(value, (int, float)):
            raise _RejectedMessage("gametype must be a number")
        try:
            return int(value)
        except (ValueError, OverflowError) as exc:
            raise _RejectedMessage("gametype must be finite") from exc


class GameServer:
    """TCP server that logs clients in, queues them and runs matches."""

    def __init__(self, games: Iterable[GameSpec], host: str = "", port: int = DEFAULT_PORT):
        self.matchmaker = Matchmaker(games)
        self.match_interval = 5.0
        self.game_tick = 1.0
        self._stop = threading.Event()
        self._clients: list[socket.socket] = []
        self._clients_lock = threading.Lock()
        self._next_client_id = 1
        self._listener = socket.create_server((host, port))
        self.server_address = self._listener.getsockname()[:2]

    def serve_forever(self) -> None:
        """Accept clients until :meth:`shutdown` is called."""
        threading.Thread(target=self._matching_loop, daemon=True).start()
        log.info("Multi-client server running on port %d...", self.server_address[1])
        self._listener.settimeout(0.5)
        try:
            while not self._stop.is_set():
                try:
                    conn, _ = self._listener.accept()
                except socket.timeout:
                    continue
                except OSError:
                    if self._stop.is_set():
                        break
                    log.error("Accept failed")
                    continue
                conn.settimeout(None)
                client_id = self._next_client_id
                self._next_client_id += 1
                threading.Thread(
                    target=self._serve_client, args=(conn, client_id), daemon=True
                ).start()
        finally:
            self._listener.close()

    def shutdown(self) -> None:
        """Stop accepting, stop matches and disconnect all clients."""
        self._stop.set()
        with self._clients_lock:
            for conn in self._clients:
                try:
                    conn.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
        self._listener.close()

    def _serve_client(self, conn: socket.socket, client_id: int) -> None:
        session = ClientSession(client_id, self.matchmaker)
        session.connection = conn
        with self._clients_lock:
            self._clients.append(conn)
        log.info("[Client %d] Connected!", client_id)
        try:
            while not self._stop.is_set():
                try:
                    data = conn.recv(RECV_SIZE)
                except OSError:
                    break
                if not data:
                    break
                try:
                    text = data.decode("utf-8")
                except UnicodeDecodeError as exc:
                    log.error("Failed to parse JSON from Client %d: %s", client_id, exc)
                    continue
                log.info("[Client %d] Message: %s", client_id, text)
                reply, broadcast = session.handle(text)
                if reply is not None:
                    self._send(conn, reply)
                if broadcast is not None:
                    self._broadcast(broadcast, conn)
        finally:
            log.info("[Client %d] Disconnected.", client_id)
            with self._clients_lock:
                if conn in self._clients:
                    self._clients.remove(conn)
            conn.close()

    def _send(self, conn: socket.socket, message: str) -> bool:
        with self._clients_lock:
            try:
                conn.sendall(message.encode("utf-8"))
            except OSError:
                return False
        return True

    def _broadcast(self, message: str, sender: socket.socket) -> None:
        data = message.encode("utf-8")
        with self._clients_lock:
            for conn in self._clients:
                if conn is sender:
                    continue
                try:
                    conn.sendall(data)
                except OSError:
                    pass

    def _matching_loop(self) -> None:
        while not self._stop.is_set():
            for match in self.matchmaker.match_once():
                threading.Thread(target=self._run_game, args=(match,), daemon=True).start()
            self._stop.wait(self.match_interval)

    def _run_game(self, match: Match) -> None:
        spec = self.matchmaker.games[match.game_index]
        log.info("Starting game %d (%s) with %d players", match.game_id, spec.name, len(match.players))
        while not self._stop.is_set():
            delivered = [
                self._send(player.connection, IN_GAME)
                for player in match.players
                if player.connection is not None
            ]
            if not any(delivered):
                break
            self._stop.wait(self.game_tick)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the matchmaking server."""
    parser = argparse.ArgumentParser(description="Run the matchmaking server.")
    parser.add_argument("--games", default=DEFAULT_GAMES_FILE, help="game catalogue file")
    parser.add_argument("--host", default="", help="address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        games = load_games(args.games)
    except OSError:
        print("unable to open file.", file=sys.stderr)
        print("unable to load games data shutting server", file=sys.stderr)
        return 1

    try:
        server = GameServer(games, args.host, args.port)
    except OSError as exc:
        print(f"Bind failed: {exc}", file=sys.stderr)
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())