import json

import pytest

from comments import CommentBoard, CommentsError, ScriptedComment, load_comments
from schedule import ConfigError, ScheduleError


class TestLoadComments:
    def test_missing_file_is_empty(self, tmp_path):
        assert load_comments(str(tmp_path / "comments.json")) == []

    def test_sorted_and_aliased(self, tmp_path):
        path = tmp_path / "comments.json"
        path.write_text(json.dumps([
            {"id": 7, "timestamp": 90, "name": "Carla", "location": "Recife (PE)", "message": "great"},
            {"id": 3, "timestamp": 0, "author": "Ana", "text": "hello"},
            {"id": 5, "timestamp_seconds": 30, "author": "Bruno", "text": "hi all"},
        ]))
        loaded = load_comments(str(path))
        assert [c.id for c in loaded] == [3, 5, 7]
        assert loaded[2].author == "Carla"
        assert loaded[2].text == "great"
        assert loaded[2].byline == "Carla – Recife (PE)"

    def test_missing_ids_are_numbered(self, tmp_path):
        path = tmp_path / "comments.json"
        path.write_text(json.dumps([{"timestamp": 5, "author": "A", "text": "x"}]))
        assert load_comments(str(path))[0].id == 1

    @pytest.mark.parametrize("payload", [
        '{"timestamp": 1}',
        '[{"author": "A", "text": "no timestamp"}]',
        '[{"timestamp": "soon", "author": "A", "text": "x"}]',
        '["just a string"]',
        '[oops',
    ])
    def test_rejects_malformed(self, tmp_path, payload):
        path = tmp_path / "comments.json"
        path.write_text(payload)
        with pytest.raises(CommentsError):
            load_comments(str(path))

    def test_error_is_a_config_error_not_a_schedule_error(self, tmp_path):
        path = tmp_path / "comments.json"
        path.write_text("{}")
        with pytest.raises(ConfigError) as info:
            load_comments(str(path))
        assert not isinstance(info.value, ScheduleError)


class TestCommentBoard:
    SCRIPTED = [
        ScriptedComment(1, 0, "Ana", "hello"),
        ScriptedComment(2, 30, "Bruno", "hi all"),
        ScriptedComment(3, 90, "Carla", "great"),
    ]

    def test_visible_follows_elapsed(self):
        board = CommentBoard(self.SCRIPTED)
        assert [c.id for c in board.visible(45)] == [1, 2]
        assert board.visible(-1) == []

    def test_viewer_comment_merged_in_order(self):
        board = CommentBoard(self.SCRIPTED)
        posted = board.post("Dani", "  from the couch  ", timestamp=40, location="Belém")
        assert posted.id == 4
        assert posted.text == "from the couch"
        assert [c.id for c in board.visible(45)] == [1, 2, 4]
        assert [c.id for c in board.visible(100)] == [1, 2, 4, 3]
        assert len(board) == 4

    def test_blank_author_and_negative_timestamp(self):
        board = CommentBoard()
        c = board.post("   ", "hi", timestamp=-3)
        assert c.author == "Guest"
        assert c.timestamp_seconds == 0

    def test_empty_text_rejected(self):
        with pytest.raises(ValueError):
            CommentBoard().post("Ana", "   ", timestamp=0)

    def test_clear_live_keeps_script(self):
        board = CommentBoard(self.SCRIPTED)
        board.post("Dani", "bye", timestamp=10)
        board.clear_live()
        assert len(board) == 3
        assert [c.id for c in board.visible(1000)] == [1, 2, 3]
