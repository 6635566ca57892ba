"""Test utilities and helpers"""

import time

import pytest

from icloud_album.core.exceptions import InvalidTokenError
from icloud_album.stream.models import Derivative
from icloud_album.utils import (
    chunked,
    extract_token,
    resolve_albums,
    select_best_derivative,
)


class TestExtractToken:
    """Test share link parsing"""

    @pytest.mark.parametrize("value", [
        "B0z5qAGN1JIFd3y",
        "  B0z5qAGN1JIFd3y\n",
        "https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y",
        "https://www.icloud.com/sharedalbum/#B0z5qAGN1JIFd3y;CAEA",
        "https://www.icloud.com/sharedalbum/B0z5qAGN1JIFd3y/",
        "https://www.icloud.com/sharedalbum/B0z5qAGN1JIFd3y?lang=en",
    ])
    def test_forms(self, value):
        assert extract_token(value) == "B0z5qAGN1JIFd3y"


class TestChunked:
    """Test batching"""

    def test_batches(self):
        assert list(chunked(["a", "b", "c", "d", "e"], 2)) == [["a", "b"], ["c", "d"], ["e"]]

    def test_exact_multiple(self):
        assert list(chunked([1, 2, 3, 4], 2)) == [[1, 2], [3, 4]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestSelectBestDerivative:
    """Test rendition selection"""

    def test_prefers_largest_original(self):
        derivatives = {
            "1": Derivative("a", width=4000, height=3000, url="https://h/a"),
            "original": Derivative("b", width=2000, height=1500, url="https://h/b"),
            "3": Derivative("c", width=3000, height=2000, url="https://h/c"),
        }

        key, _ = select_best_derivative(derivatives)

        assert key == "3"

    def test_original_without_dimensions_beats_non_original(self):
        derivatives = {
            "1": Derivative("a", width=4000, height=3000, url="https://h/a"),
            "FullSize": Derivative("b", url="https://h/b"),
        }

        key, _ = select_best_derivative(derivatives)

        assert key == "FullSize"

    def test_highest_resolution_without_originals(self):
        derivatives = {
            "1": Derivative("a", width=100, height=100, url="https://h/a"),
            "2": Derivative("b", width=800, height=600, url="https://h/b"),
            "PosterFrame": Derivative("c", url="https://h/c"),
        }

        key, _ = select_best_derivative(derivatives)

        assert key == "2"

    def test_first_with_url_as_fallback(self):
        derivatives = {
            "1": Derivative("a"),
            "2": Derivative("b", url="https://h/b"),
            "5": Derivative("c", url="https://h/c"),
        }

        key, _ = select_best_derivative(derivatives)

        assert key == "2"

    def test_ignores_derivatives_without_url(self):
        derivatives = {
            "original": Derivative("a", width=4000, height=3000),
            "1": Derivative("b", width=100, height=100, url="https://h/b"),
        }

        key, _ = select_best_derivative(derivatives)

        assert key == "1"

    def test_none_when_nothing_resolved(self):
        assert select_best_derivative({"1": Derivative("a")}) is None
        assert select_best_derivative({}) is None


class TestResolveAlbums:
    """Test parallel resolution"""

    def test_results_in_input_order(self):
        def resolver(token):
            time.sleep(0.01 if token == "A" else 0)
            return token.lower()

        results = resolve_albums(["A", "B", "C"], resolver, threads=3, show_progress=False)

        assert results == [("A", "a"), ("B", "b"), ("C", "c")]

    def test_errors_are_collected(self):
        def resolver(token):
            if token == "-bad":
                raise InvalidTokenError(token)
            return token

        results = resolve_albums(["A1", "-bad"], resolver, threads=2, show_progress=False)

        assert results[0] == ("A1", "A1")
        assert results[1][0] == "-bad"
        assert isinstance(results[1][1], InvalidTokenError)

    def test_empty(self):
        assert resolve_albums([], lambda token: token, show_progress=False) == []
