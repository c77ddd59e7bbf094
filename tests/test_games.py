import pytest

from matchqueue.games import GameSpec, load_game_names, load_games, parse_game_line


def test_parse_simple_line():
    assert parse_game_line("chess,2,2") == GameSpec("chess", 2, 2)


def test_parse_ignores_fields_after_third():
    assert parse_game_line("poker,2,8,cards") == GameSpec("poker", 2, 8)


def test_parse_counts_allow_leading_space_and_trailing_text():
    assert parse_game_line("go, 2,2 players") == GameSpec("go", 2, 2)


def test_parse_allows_empty_name():
    assert parse_game_line(",1,4") == GameSpec("", 1, 4)


@pytest.mark.parametrize("line", ["", "chess", "chess,2", "chess,2,"])
def test_parse_rejects_missing_fields(line):
    with pytest.raises(ValueError, match="Invalid line format"):
        parse_game_line(line)


@pytest.mark.parametrize("line", ["chess,two,2", "chess,,2", "chess,2,,4"])
def test_parse_rejects_non_numeric_counts(line):
    with pytest.raises(ValueError, match="invalid player count"):
        parse_game_line(line)


def test_load_games_skips_malformed_lines(tmp_path):
    path = tmp_path / "games.txt"
    path.write_text("chess,2,2\nbroken\npoker,2,8\n", encoding="utf-8")
    assert load_games(path) == [GameSpec("chess", 2, 2), GameSpec("poker", 2, 8)]


def test_load_games_handles_crlf(tmp_path):
    path = tmp_path / "games.txt"
    path.write_bytes(b"chess,2,2\r\nchess,1,3\r\n")
    assert load_games(path) == [GameSpec("chess", 2, 2), GameSpec("chess", 1, 3)]


def test_load_games_round_trip(tmp_path):
    specs = [GameSpec("chess", 2, 2), GameSpec("poker", 2, 8), GameSpec("solo", 1, 1)]
    path = tmp_path / "games.txt"
    path.write_text(
        "".join(f"{s.name},{s.min_players},{s.max_players}\n" for s in specs),
        encoding="utf-8",
    )
    assert load_games(path) == specs


def test_load_games_bad_count_propagates(tmp_path):
    path = tmp_path / "games.txt"
    path.write_text("chess,x,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="invalid player count"):
        load_games(path)


def test_load_games_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_games(tmp_path / "absent.txt")


def test_load_game_names_keeps_every_line(tmp_path):
    path = tmp_path / "gamesclient.txt"
    path.write_text("chess\n\npoker\n", encoding="utf-8")
    assert load_game_names(path) == ["chess", "", "poker"]


def test_load_game_names_without_trailing_newline(tmp_path):
    path = tmp_path / "gamesclient.txt"
    path.write_text("chess\npoker", encoding="utf-8")
    assert load_game_names(path) == ["chess", "poker"]


def test_load_game_names_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_game_names(tmp_path / "absent.txt")