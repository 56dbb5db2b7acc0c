import sys
import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controllers import movie_controller
from models.enums import MovieStatus
from utils.app_error import AppError

def make_user(role):
    return {"_id": str(ObjectId()), "role": role}

class TestMovieController(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.collection.find_one = AsyncMock()
        self.collection.insert_one = AsyncMock()
        self.collection.delete_one = AsyncMock()
        self.collection.update_one = AsyncMock()

        patches = [
            patch.object(movie_controller, "movie_collection", self.collection),
            patch.object(movie_controller, "invalidate_public_cache", AsyncMock()),
            patch.object(movie_controller, "tmdb", MagicMock(get_movie_details=AsyncMock())),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

        self.admin = make_user("ADMIN")
        self.other_admin = make_user("ADMIN")
        self.super_admin = make_user("SUPER_ADMIN")

    async def test_create_duplicate_tmdb_id_conflicts(self):
        self.collection.find_one.return_value = {"_id": ObjectId()}

        with self.assertRaises(AppError) as ctx:
            await movie_controller.create_movie(27205, MovieStatus.PENDING, self.admin)

        self.assertEqual(ctx.exception.status_code, 409)
        movie_controller.tmdb.get_movie_details.assert_not_called()
        self.collection.insert_one.assert_not_called()

    async def test_create_concurrent_duplicate_conflicts(self):
        # Both imports passed the existence check; the unique index decides
        self.collection.find_one.return_value = None
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
        movie_controller.tmdb.get_movie_details.return_value = {"title": "Inception"}

        with patch.object(movie_controller, "upload_tmdb_image", AsyncMock(return_value=None)), \
                patch.object(movie_controller, "upsert_genres", AsyncMock(return_value=[])), \
                patch.object(movie_controller, "build_credits", AsyncMock(return_value=[])):
            with self.assertRaises(AppError) as ctx:
                await movie_controller.create_movie(27205, MovieStatus.PENDING, self.admin)

        self.assertEqual(ctx.exception.status_code, 409)
        movie_controller.invalidate_public_cache.assert_not_called()

    async def test_create_rejects_bad_tmdb_id(self):
        for value in ("abc", 0, -5, None):
            with self.assertRaises(AppError) as ctx:
                await movie_controller.create_movie(value, MovieStatus.PENDING, self.admin)
            self.assertEqual(ctx.exception.status_code, 400)
        self.collection.find_one.assert_not_called()

    async def test_create_builds_movie_from_tmdb(self):
        movie_id = ObjectId()
        genre_id = ObjectId()
        self.collection.find_one.side_effect = [None, {"_id": movie_id, "tmdbId": 27205, "title": "Inception"}]
        self.collection.insert_one.return_value = MagicMock(inserted_id=movie_id)
        movie_controller.tmdb.get_movie_details.return_value = {
            "title": "Inception",
            "original_title": "Inception",
            "overview": "Dreams within dreams.",
            "release_date": "2010-07-15",
            "runtime": 148,
            "vote_average": 8.367,
            "poster_path": "/poster.jpg",
            "backdrop_path": "/backdrop.jpg",
            "production_countries": [{"iso_3166_1": "US", "name": "United States of America"}],
            "genres": [{"id": 28, "name": "Action"}],
            "videos": {"results": [{"site": "YouTube", "type": "Trailer", "key": "YoHD9XEInc0"}]},
            "credits": {"cast": [], "crew": []},
        }

        with patch.object(movie_controller, "upload_tmdb_image", AsyncMock(side_effect=["https://img/p", "https://img/b"])), \
                patch.object(movie_controller, "upsert_genres", AsyncMock(return_value=[genre_id])), \
                patch.object(movie_controller, "build_credits", AsyncMock(return_value=[])), \
                patch.object(movie_controller, "hydrate", AsyncMock(return_value={"_id": str(movie_id)})):
            result = await movie_controller.create_movie("27205", MovieStatus.PUBLISHED, self.admin)

        self.assertTrue(result["success"])
        doc = self.collection.insert_one.call_args[0][0]
        self.assertEqual(doc["tmdbId"], 27205)
        self.assertEqual(doc["status"], "PUBLISHED")
        self.assertEqual(doc["imdbRating"], 8.4)
        self.assertEqual(doc["posterPath"], "https://img/p")
        self.assertEqual(doc["backdropPath"], "https://img/b")
        self.assertEqual(doc["trailerUrl"], "https://www.youtube.com/watch?v=YoHD9XEInc0")
        self.assertEqual(doc["countryOfOrigin"], "United States of America")
        self.assertEqual(doc["genreIds"], [genre_id])
        self.assertEqual(doc["addedBy"], ObjectId(self.admin["_id"]))

    async def test_delete_not_owned_is_forbidden(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "addedBy": ObjectId(self.other_admin["_id"])}

        with self.assertRaises(AppError) as ctx:
            await movie_controller.delete_movie(str(movie_id), self.admin)

        self.assertEqual(ctx.exception.status_code, 403)
        self.collection.delete_one.assert_not_called()

    async def test_delete_own_movie(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "addedBy": ObjectId(self.admin["_id"])}

        result = await movie_controller.delete_movie(str(movie_id), self.admin)

        self.assertTrue(result["success"])
        self.collection.delete_one.assert_awaited_once_with({"_id": movie_id})

    async def test_super_admin_deletes_any_movie(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "addedBy": ObjectId(self.admin["_id"])}

        result = await movie_controller.delete_movie(str(movie_id), self.super_admin)

        self.assertTrue(result["success"])

    async def test_delete_missing_movie(self):
        self.collection.find_one.return_value = None

        with self.assertRaises(AppError) as ctx:
            await movie_controller.delete_movie(str(ObjectId()), self.admin)
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_invalid_movie_id(self):
        with self.assertRaises(AppError) as ctx:
            await movie_controller.get_admin_movie_by_id("not-an-id")
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_empty_update_rejected(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "addedBy": ObjectId(self.admin["_id"])}

        with self.assertRaises(AppError) as ctx:
            await movie_controller.update_movie(str(movie_id), {}, self.admin)
        self.assertEqual(ctx.exception.status_code, 400)
        self.collection.update_one.assert_not_called()

    async def test_update_not_owned_is_forbidden(self):
        movie_id = ObjectId()
        self.collection.find_one.return_value = {"_id": movie_id, "addedBy": ObjectId(self.other_admin["_id"])}

        with self.assertRaises(AppError) as ctx:
            await movie_controller.update_movie(str(movie_id), {"title": "x"}, self.admin)
        self.assertEqual(ctx.exception.status_code, 403)

    async def test_list_for_plain_user_is_empty(self):
        result = await movie_controller.get_admin_movies(make_user("USER"))
        self.assertEqual(result["data"]["movies"], [])
        self.assertEqual(result["data"]["totalMovies"], 0)

if __name__ == "__main__":
    unittest.main()
