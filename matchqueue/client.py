"""Interactive matchmaking client: log in, join a game queue, chat with the server."""

from __future__ import annotations

import argparse
import json
import socket
import sys
import threading
from typing import Any, Callable, Optional, Sequence

from .games import load_game_names

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_GAMES_FILE = "gamesclient.txt"
RECV_SIZE = 1023
QUIT = "/quit"
LOGIN_PROMPTS = ("username: ", "password: ")

ReadLine = Callable[[str], str]


def build_login_message(username: str, password: str) -> str:
    """The JSON text sent to log in."""
    return json.dumps({"username": username, "password": password}, ensure_ascii=False)


def build_enqueue_message(game_index: int) -> str:
    """The JSON text that asks to join the queue of a game type."""
    return json.dumps({"action": "enqueue", "gametype": game_index})


def find_game(games: Sequence[str], name: str) -> Optional[int]:
    """Index of the first game called ``name``, or ``None``."""
    for index, game in enumerate(games):
        if game == name:
            return index
    return None


class ClientState:
    """Flags shared between the input thread and the receiving thread."""

    def __init__(self) -> None:
        self.running = True
        self.logged_in = False
        self.enqueued = False
        self._received = False
        self._cond = threading.Condition()

    def update(self, text: str) -> Any:
        """Record a server message; returns its decoded JSON, or ``None`` if invalid."""
        try:
            payload = json.loads(text)
        except ValueError:
            print("error json received from server", file=sys.stderr)
            payload = None
        if isinstance(payload, dict):
            if "message" in payload:
                if payload["message"] == "logged in":
                    self.logged_in = True
                elif payload["message"] == "enqueued":
                    self.enqueued = True
            elif "error" in payload:
                print(json.dumps(payload["error"], ensure_ascii=False), file=sys.stderr)
        with self._cond:
            self._received = True
            self._cond.notify_all()
        return payload

    def stop(self) -> None:
        """Mark the client as stopped and wake anyone waiting for a reply."""
        with self._cond:
            self.running = False
            self._cond.notify_all()

    def wait_for_reply(self, timeout: Optional[float] = None) -> bool:
        """Wait until a server message arrives; ``False`` on timeout or stop."""
        with self._cond:
            self._cond.wait_for(lambda: self._received or not self.running, timeout)
            if self._received:
                self._received = False
                return True
            return False


class GameClient:
    """Drives one connection to the matchmaking server."""

    def __init__(self, sock: socket.socket, games: Sequence[str]):
        self.sock = sock
        self.games = list(games)
        self.state = ClientState()

    def _ask(self, read_line: ReadLine, prompt: str) -> str:
        try:
            return read_line(prompt)
        except EOFError:
            return QUIT

    def _send(self, message: str) -> bool:
        try:
            self.sock.sendall(message.encode("utf-8"))
        except OSError:
            print("send failed.", file=sys.stderr)
            self.state.stop()
            return False
        return True

    def receive_loop(self) -> None:
        """Read server messages until the connection ends."""
        while self.state.running:
            try:
                data = self.sock.recv(RECV_SIZE)
            except OSError:
                if self.state.running:
                    print("recv failed.", file=sys.stderr)
                self.state.stop()
                break
            if not data:
                print("Server disconnected.")
                self.state.stop()
                break
            text = data.decode("utf-8", errors="replace")
            print(f"[Server]: {text}")
            self.state.update(text)

    def login(self, read_line: ReadLine) -> bool:
        """Ask for credentials until the server accepts them."""
        user_prompt, secret_prompt = LOGIN_PROMPTS
        while not self.state.logged_in:
            username = self._ask(read_line, user_prompt)
            if username == QUIT:
                self.state.stop()
                return False
            password = self._ask(read_line, secret_prompt)
            if password == QUIT:
                self.state.stop()
                return False
            if not self._send(build_login_message(username, password)):
                return False
            if not self.state.wait_for_reply():
                return False
        print("client logged in")
        return True

    def enqueue(self, read_line: ReadLine) -> bool:
        """Ask for a game name until a known one is given, then join its queue."""
        while True:
            name = self._ask(read_line, "enqueue for game: ")
            if name == QUIT:
                self.state.stop()
                return False
            index = find_game(self.games, name)
            if index is None:
                continue
            if not self._send(build_enqueue_message(index)):
                return False
            if not self.state.wait_for_reply():
                return False
            print(f"enqueued for game {name}")
            return True

    def run(self, read_line: ReadLine) -> None:
        """Log in, join a queue, then forward typed lines until ``/quit``."""
        if not self.login(read_line):
            return
        if not self.enqueue(read_line):
            return
        while self.state.running:
            line = self._ask(read_line, "")
            if line == QUIT:
                self.state.stop()
                break
            if not self.state.running:
                break
            if not self._send(line):
                break


def main(argv: Optional[list[str]] = None) -> int:
    """Run the interactive client."""
    parser = argparse.ArgumentParser(description="Connect to the matchmaking server.")
    parser.add_argument("--games", default=DEFAULT_GAMES_FILE, help="game names file")
    parser.add_argument("--host", default=DEFAULT_HOST, help="server address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="server port")
    args = parser.parse_args(argv)

    try:
        games = load_game_names(args.games)
    except OSError:
        print("unable to open file.", file=sys.stderr)
        return 1

    try:
        sock = socket.create_connection((args.host, args.port))
    except OSError:
        print("Connection failed.", file=sys.stderr)
        return 1

    print(f"Connected to the server at {args.host}:{args.port}")
    client = GameClient(sock, games)
    receiver = threading.Thread(target=client.receive_loop, daemon=True)
    receiver.start()
    try:
        client.run(input)
    except KeyboardInterrupt:
        pass
    finally:
        client.state.stop()
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
        receiver.join(timeout=2)
    print("Client exited.")
    return 0


if __name__ == "__main__":
    sys.exit(main())