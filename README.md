# matchqueue

A small matchmaking service over TCP. Clients connect to a server, log in
and join a queue for a game type. The server checks the queues every five
seconds and groups the waiting players into matches. Every message is one
JSON object.

## Installing

```
pip install .
```

## Game files

The server reads a games file (`games.txt` by default). Each line is
`name,min_players,max_players`:

```
chess,2,2
poker,2,6
```

Fields after the third are ignored. A line that lacks the three
comma-separated fields is logged and skipped. A player count that does not
start with an integer makes loading fail with `ValueError`.

The client reads a file (`gamesclient.txt` by default) with one game name
per line. The position of a name in that file is the index the client sends
to the server, so list the games in the same order as in the server's file.

## Running

Start the server. By default it listens on all interfaces, on port 8080:

```
matchqueue-server --games games.txt --host 0.0.0.0 --port 8080
```

Then start a client in another terminal. By default it connects to
`127.0.0.1:8080`:

```
matchqueue-client --games gamesclient.txt --host 127.0.0.1 --port 8080
```

The client asks for a username and a password, then for the name of a game.
Names not in its games file are asked for again. After it has joined a
queue, each line you type is sent to the server unchanged, and everything
the server sends is printed as `[Server]: ...`. Type `/quit` at any prompt to
leave.

## Protocol

- Login: `{"username": "...", "password": "..."}`. The server answers
  `{"message": "logged in"}`. Until a client has logged in, any other JSON
  gets `{"error": "server side json parsing failed"}`.
- Queue: `{"action": "enqueue", "gametype": <index>}`. The server answers
  `{"message" : "enqueued"}`. Another action, or a missing `gametype`, gets
  `{"error": "unable to interpret sent action"}`. A logged-in message without
  `action` gets `{"error": "unable to interpret sent message"}`.
- Each JSON message from a logged-in client is also passed on to every other
  connected client as `[Client <id>] sent JSON: <json>`.
- Text that is not JSON, values of the wrong type and unknown game indexes
  are logged on the server and get no reply.
- Once a match has started, each of its players gets
  `{"message": "in game and is ongoing" }` about once a second.

A match is formed when a queue holds at least the game's minimum. Players
are then taken from the front of the queue while the group has no more than
the game's maximum, so a group can hold one player more than that maximum.

## What it does not do

- Logins are not checked: `attempt_login` accepts any username and password
  strings, and no accounts are stored.
- A match has no game in it. The server only sends the status message above
  to its players until the server stops or none of them can be reached.

## Using it as a library

- `matchqueue.games`: `GameSpec`, `parse_game_line`, `load_games` and
  `load_game_names`.
- `matchqueue.server`: `Matchmaker` (`enqueue`, `queue_length`,
  `match_once`, which returns `Match` objects of `Player`s), `ClientSession`
  (`handle(text)` returns the reply for the client and the message for the
  other clients), `GameServer` (`serve_forever`, `shutdown`),
  `attempt_login` and `main`.
- `matchqueue.client`: `GameClient` (`receive_loop`, `login`, `enqueue`,
  `run`, each taking a function that reads a line given a prompt),
  `ClientState`, `build_login_message`, `build_enqueue_message`, `find_game`
  and `main`.

## Tests

```
pip install ".[test]"
pytest
```