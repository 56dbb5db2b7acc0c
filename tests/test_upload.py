import sys
import os
import unittest
from unittest.mock import AsyncMock, MagicMock

# Add the project root to the path so we can import our modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import MAX_UPLOAD_SIZE
from middleware.upload import read_image_upload
from utils.app_error import AppError

def upload(filename="poster.jpg", content_type="image/jpeg", data=b"\xff\xd8\xff"):
    return MagicMock(filename=filename, content_type=content_type, read=AsyncMock(return_value=data))

class TestImageUpload(unittest.IsolatedAsyncioTestCase):

    async def test_accepts_image(self):
        self.assertEqual(await read_image_upload(upload()), b"\xff\xd8\xff")

    async def test_rejects_missing_file(self):
        for file in (None, upload(filename="")):
            with self.assertRaises(AppError) as ctx:
                await read_image_upload(file)
            self.assertEqual(ctx.exception.status_code, 400)

    async def test_rejects_non_image(self):
        with self.assertRaises(AppError) as ctx:
            await read_image_upload(upload(filename="notes.pdf", content_type="application/pdf"))
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_rejects_oversized(self):
        with self.assertRaises(AppError) as ctx:
            await read_image_upload(upload(data=b"0" * (MAX_UPLOAD_SIZE + 1)))
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_rejects_empty(self):
        with self.assertRaises(AppError) as ctx:
            await read_image_upload(upload(data=b""))
        self.assertEqual(ctx.exception.status_code, 400)

if __name__ == "__main__":
    unittest.main()
