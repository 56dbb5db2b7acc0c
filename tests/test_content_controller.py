import sys
import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controllers import content_controller

def movie(title, year, **extra):
    return dict({"_id": title, "title": title, "releaseDate": datetime(year, 1, 1), "adult": False}, **extra)

def show(title, year, **extra):
    return dict({"_id": title, "title": title, "firstAirDate": datetime(year, 1, 1), "numberOfSeasons": 2}, **extra)

class TestContentSections(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.get_cache = AsyncMock(return_value=None)
        self.set_cache = AsyncMock()
        patches = [
            patch.object(content_controller, "get_cache", self.get_cache),
            patch.object(content_controller, "set_cache", self.set_cache),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    async def test_hero_merges_movies_and_shows_newest_first(self):
        fetch = AsyncMock(side_effect=[
            [movie("Inception", 2010), movie("Dune", 2021), movie("Heat", 1995)],
            [show("Severance", 2022), show("Dark", 2017)],
        ])

        with patch.object(content_controller, "_fetch_items", fetch):
            result = await content_controller.get_hero_items()

        items = result["data"]
        self.assertEqual([i["title"] for i in items], ["Severance", "Dune", "Dark", "Inception", "Heat"])
        self.assertEqual([i["type"] for i in items], ["show", "movie", "show", "movie", "movie"])
        self.assertEqual(fetch.call_args_list[0][0][3], 3)
        self.assertEqual(fetch.call_args_list[1][0][3], 2)
        self.set_cache.assert_awaited_once()
        self.assertEqual(self.set_cache.call_args[0][0], "content:hero-items")

    async def test_top_movies_are_ranked(self):
        movies = [movie(f"Movie {n}", 2000 + n, imdbRating=9.5 - n / 10) for n in range(10)]
        fetch = AsyncMock(return_value=movies)

        with patch.object(content_controller, "_fetch_items", fetch):
            result = await content_controller.get_top_movies()

        self.assertEqual([i["rank"] for i in result["data"]], list(range(1, 11)))
        self.assertEqual(result["data"][0]["title"], "Movie 0")
        query = fetch.call_args[0][1]
        self.assertEqual(query["imdbRating"], {"$ne": None})
        self.assertEqual(fetch.call_args[0][2][0], ("imdbRating", content_controller.DESCENDING))
        self.assertEqual(fetch.call_args[0][3], 10)

    async def test_top_series_are_ranked(self):
        fetch = AsyncMock(return_value=[show("Dark", 2017, imdbRating=8.7), show("Severance", 2022, imdbRating=8.7)])

        with patch.object(content_controller, "_fetch_items", fetch):
            result = await content_controller.get_top_series()

        self.assertEqual([(i["rank"], i["type"]) for i in result["data"]], [(1, "show"), (2, "show")])

    async def test_featured_item_empty_catalog(self):
        with patch.object(content_controller, "_fetch_items", AsyncMock(return_value=[])):
            result = await content_controller.get_featured_item()
        self.assertIsNone(result["data"])

    async def test_cached_section_is_served_as_is(self):
        cached = {"success": True, "data": [{"title": "Dune"}]}
        self.get_cache.return_value = cached
        fetch = AsyncMock()

        with patch.object(content_controller, "_fetch_items", fetch):
            result = await content_controller.get_trending_movies(5)

        self.assertEqual(result, cached)
        fetch.assert_not_called()
        self.get_cache.assert_awaited_once_with("content:trending-movies:5")

    async def test_upcoming_movies_paging(self):
        movies = MagicMock()
        movies.count_documents = AsyncMock(return_value=45)
        fetch = AsyncMock(return_value=[movie("Dune 3", 2027)])

        with patch.object(content_controller, "movie_collection", movies), \
                patch.object(content_controller, "_fetch_items", fetch):
            result = await content_controller.get_upcoming_movies(page=2, limit=20)

        data = result["data"]
        self.assertEqual(data["totalItems"], 45)
        self.assertEqual(data["totalPages"], 3)
        self.assertEqual(data["currentPage"], 2)
        self.assertEqual(data["items"][0]["title"], "Dune 3")
        self.assertEqual(fetch.call_args[0][1]["status"], "UPCOMING")
        self.assertEqual(fetch.call_args[0][4], 20)

if __name__ == "__main__":
    unittest.main()
