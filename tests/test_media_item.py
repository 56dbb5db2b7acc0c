import sys
import os
import unittest
from datetime import datetime

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.media_item import map_to_media_item, truncate_description

class TestMediaItem(unittest.TestCase):

    def test_movie_fields(self):
        item = map_to_media_item({
            "_id": "665f1c2e9b1e8a3d4c5b6a79",
            "tmdbId": 27205,
            "title": "تلقین",
            "originalTitle": "Inception",
            "description": "A thief who steals corporate secrets.",
            "runtime": 148,
            "imdbRating": 8.8,
            "releaseDate": "2010-07-15T00:00:00",
            "adult": False,
            "tagline": "Your mind is the scene of the crime",
            "genres": [{"_id": "1", "name": "Action"}, {"_id": "2", "name": "Sci-Fi"}],
        }, "movie")

        self.assertEqual(item["id"], "665f1c2e9b1e8a3d4c5b6a79")
        self.assertEqual(item["type"], "movie")
        self.assertEqual(item["rating"], "8.8 IMDb")
        self.assertEqual(item["duration"], "148 دقیقه")
        self.assertEqual(item["releaseYear"], 2010)
        self.assertEqual(item["ageRating"], "همه سنین")
        self.assertEqual(item["genres"], ["Action", "Sci-Fi"])
        self.assertEqual(item["heroSubtitle"], "Your mind is the scene of the crime")
        self.assertEqual(item["heroTagline"], "Your mind is the scene of the crime")

    def test_series_fields(self):
        item = map_to_media_item({
            "_id": "abc",
            "title": "Breaking Bad",
            "numberOfSeasons": 5,
            "firstAirDate": datetime(2008, 1, 20),
            "adult": True,
        }, "show")

        self.assertEqual(item["type"], "show")
        self.assertEqual(item["duration"], "5 فصل")
        self.assertEqual(item["releaseYear"], 2008)
        self.assertEqual(item["ageRating"], "18+")
        self.assertIsNone(item["rating"])

    def test_rating_falls_back_to_tmdb_vote(self):
        item = map_to_media_item({"title": "x", "vote_average": 7.2}, "movie")
        self.assertEqual(item["rating"], "7.2/10 TMDB")

    def test_unknown_adult_flag_has_no_age_rating(self):
        item = map_to_media_item({"title": "x"}, "movie")
        self.assertIsNone(item["ageRating"])
        self.assertIsNone(item["duration"])
        self.assertIsNone(item["releaseYear"])
        self.assertEqual(item["description"], "")

    def test_empty_item(self):
        self.assertIsNone(map_to_media_item(None, "movie"))
        self.assertIsNone(map_to_media_item({}, "movie"))

    def test_description_truncation(self):
        self.assertEqual(truncate_description("a" * 150), "a" * 150)
        self.assertEqual(truncate_description("a" * 151), "a" * 147 + "...")
        self.assertEqual(len(truncate_description("b" * 400)), 150)
        self.assertEqual(truncate_description(None), "")

if __name__ == "__main__":
    unittest.main()
