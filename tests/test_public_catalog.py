import sys
import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch
from bson import ObjectId

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controllers import public_movie_controller, public_series_controller
from controllers.public_movie_controller import lookup_filter
from utils.app_error import AppError

class TestLookupFilter(unittest.TestCase):

    def test_numeric_is_tmdb_id(self):
        self.assertEqual(lookup_filter("27205"), {"tmdbId": 27205})

    def test_object_id(self):
        movie_id = ObjectId()
        self.assertEqual(lookup_filter(str(movie_id)), {"_id": movie_id})

    def test_garbage(self):
        self.assertIsNone(lookup_filter("inception"))

class CatalogTestCase(unittest.IsolatedAsyncioTestCase):
    """Cache misses by default; the collection under test is patched per suite"""

    controller = None
    collection_name = None

    def setUp(self):
        self.collection = MagicMock()
        self.collection.find_one = AsyncMock()
        self.set_cache = AsyncMock()
        patches = [
            patch.object(self.controller, self.collection_name, self.collection),
            patch.object(self.controller, "get_cache", AsyncMock(return_value=None)),
            patch.object(self.controller, "set_cache", self.set_cache),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

class TestPublicMovieDetails(CatalogTestCase):

    controller = public_movie_controller
    collection_name = "movie_collection"

    async def test_unknown_movie(self):
        self.collection.find_one.return_value = None
        with self.assertRaises(AppError) as ctx:
            await public_movie_controller.get_public_movie_details("27205")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_invalid_identifier_is_not_found(self):
        with self.assertRaises(AppError) as ctx:
            await public_movie_controller.get_public_movie_details("inception")
        self.assertEqual(ctx.exception.status_code, 404)
        self.collection.find_one.assert_not_called()

    async def test_hidden_statuses_are_forbidden(self):
        for status_value in ("PENDING", "UPCOMING"):
            self.collection.find_one.return_value = {"_id": ObjectId(), "status": status_value}
            with self.assertRaises(AppError) as ctx:
                await public_movie_controller.get_public_movie_details("27205")
            self.assertEqual(ctx.exception.status_code, 403)
        self.set_cache.assert_not_called()

    async def test_published_movie_hides_owner(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "status": "ARCHIVED"}
        hydrated = {"_id": str(movie_id), "addedBy": str(ObjectId()), "genres": [], "credits": []}

        with patch.object(public_movie_controller, "hydrate", AsyncMock(return_value=hydrated)) as hydrate:
            result = await public_movie_controller.get_public_movie_details(str(movie_id))

        self.assertNotIn("addedBy", result["data"])
        self.assertEqual(hydrate.call_args[1]["credit_limit"], 15)
        self.set_cache.assert_awaited_once()
        self.assertEqual(self.set_cache.call_args[0][0], f"public:movie:{movie_id}")

class TestPublicSeriesDetails(CatalogTestCase):

    controller = public_series_controller
    collection_name = "series_collection"

    async def test_pending_series_is_forbidden(self):
        self.collection.find_one.return_value = {"_id": ObjectId(), "status": "PENDING"}
        with self.assertRaises(AppError) as ctx:
            await public_series_controller.get_public_series_details("1396")
        self.assertEqual(ctx.exception.status_code, 403)

    async def test_only_aired_regular_seasons(self):
        series_id = ObjectId()
        self.collection.find_one.return_value = {"_id": series_id, "status": "ARCHIVED"}
        seasons = AsyncMock(return_value=[{"seasonNumber": 1, "episodes": []}])

        with patch.object(public_series_controller, "hydrate", AsyncMock(return_value={"_id": str(series_id)})), \
                patch.object(public_series_controller, "load_seasons_with_episodes", seasons):
            result = await public_series_controller.get_public_series_details("1396")

        self.collection.find_one.assert_awaited_once_with({"tmdbId": 1396})
        self.assertEqual(result["data"]["seasons"], [{"seasonNumber": 1, "episodes": []}])

        season_filter = seasons.call_args[1]["season_filter"]
        episode_filter = seasons.call_args[1]["episode_filter"]
        self.assertEqual(season_filter["seasonNumber"], {"$ne": 0})
        self.assertIn("$lte", season_filter["airDate"])
        self.assertIn("$lte", episode_filter["airDate"])

class TestPublicLists(unittest.IsolatedAsyncioTestCase):

    async def test_movie_list_filters_to_public_statuses(self):
        movies = MagicMock()
        chain = movies.find.return_value.sort.return_value.skip.return_value.limit.return_value
        chain.to_list = AsyncMock(return_value=[])
        movies.count_documents = AsyncMock(return_value=0)

        with patch.object(public_movie_controller, "movie_collection", movies), \
                patch.object(public_movie_controller, "get_cache", AsyncMock(return_value=None)), \
                patch.object(public_movie_controller, "set_cache", AsyncMock()):
            result = await public_movie_controller.get_public_movies(page=2, limit=12)

        query = movies.find.call_args[0][0]
        self.assertEqual(query["status"], {"$in": ["PUBLISHED", "ARCHIVED"]})
        self.assertEqual(query["posterPath"], {"$ne": None})
        movies.find.return_value.sort.return_value.skip.assert_called_once_with(12)
        self.assertEqual(result["data"]["currentPage"], 2)

    async def test_cached_list_skips_database(self):
        cached = {"success": True, "data": {"series": []}}
        series = MagicMock()

        with patch.object(public_series_controller, "series_collection", series), \
                patch.object(public_series_controller, "get_cache", AsyncMock(return_value=cached)):
            result = await public_series_controller.get_public_series()

        self.assertEqual(result, cached)
        series.find.assert_not_called()

if __name__ == "__main__":
    unittest.main()
