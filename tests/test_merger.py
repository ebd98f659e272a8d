# tests/test_merger.py
"""Test applying downloads to the library"""

from pathlib import Path
from unittest.mock import patch

from ongaku.library.models import DownloadResult, Entry, EntryType, Task, Track
from ongaku.sync.merger import merge_results


def _result(entry_id, entry_type, entry_name, track_url, file):
    return DownloadResult(
        task=Task(entry_id, entry_type, entry_name, track_url),
        file=Path(file),
    )


class TestMergeResults:
    """Test merge_results"""

    def test_appends_in_arrival_order(self, sample_library):
        """Test results are appended to their entry"""
        results = [
            _result("PLAYLIST/PLmix", EntryType.PLAYLIST, "Test Mix", "p2", "p2.m4a"),
            _result("ARTIST/UCartist", EntryType.ARTIST, "Test Artist", "t2", "t2.m4a"),
            _result("PLAYLIST/PLmix", EntryType.PLAYLIST, "Test Mix", "p1", "p1.m4a"),
        ]

        assert merge_results(sample_library, results) == 3

        assert sample_library.entries["PLAYLIST/PLmix"].tracks == [
            Track(url="p2", file=Path("p2.m4a")),
            Track(url="p1", file=Path("p1.m4a")),
        ]
        assert sample_library.entries["ARTIST/UCartist"].tracks[-1] == Track(url="t2", file=Path("t2.m4a"))

    def test_unknown_entry_is_ignored(self, sample_library):
        """Test a result for a removed entry changes nothing"""
        results = [_result("PLAYLIST/gone", EntryType.PLAYLIST, "Gone", "g1", "g1.m4a")]

        assert merge_results(sample_library, results) == 0

        assert "PLAYLIST/gone" not in sample_library.entries
        assert sample_library.track_count() == 1

    def test_at_most_once(self, sample_library):
        """Test a URL is recorded once even if delivered twice"""
        result = _result("PLAYLIST/PLmix", EntryType.PLAYLIST, "Test Mix", "p1", "p1.m4a")

        assert merge_results(sample_library, [result, result]) == 1

        assert [track.url for track in sample_library.entries["PLAYLIST/PLmix"].tracks] == ["p1"]

    def test_already_recorded_url(self, sample_library):
        """Test a URL the entry already has is not added again"""
        results = [
            _result(
                "ARTIST/UCartist", EntryType.ARTIST, "Test Artist",
                "https://www.youtube.com/watch?v=t1", "elsewhere.m4a"
            )
        ]

        assert merge_results(sample_library, results) == 0
        assert sample_library.entries["ARTIST/UCartist"].tracks[0].file == Path("Artists/Test Artist/t1.m4a")

    def test_consumes_generator(self, sample_library):
        """Test results can be streamed"""
        def stream():
            for index in range(3):
                yield _result("PLAYLIST/PLmix", EntryType.PLAYLIST, "Test Mix", f"p{index}", f"p{index}.m4a")

        assert merge_results(sample_library, stream()) == 3

    def test_large_batch_without_track_scans(self, sample_library):
        """Test known URLs are looked up in a set, not by scanning the tracks"""
        results = [
            _result("PLAYLIST/PLmix", EntryType.PLAYLIST, "Test Mix", f"p{index}", f"p{index}.m4a")
            for index in range(500)
        ]
        results.append(results[250])

        with patch.object(Entry, "has_track", side_effect=AssertionError("linear scan")):
            assert merge_results(sample_library, results) == 500

        urls = [track.url for track in sample_library.entries["PLAYLIST/PLmix"].tracks]
        assert len(urls) == 500
        assert len(set(urls)) == 500
