"""Supabase Storage bucket for meal photos."""

from dataclasses import dataclass

from supabase import Client

from calorie_tracker.services.meals import ImageStorage


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Stores meal photos at ``meals/<meal_id>.jpg`` in a bucket."""

    client: Client
    bucket: str

    def store_image(self, image_bytes: bytes, meal_id: str) -> str:
        """Upload the image, replacing an existing one, and return its URL."""
        path = _image_path(meal_id)
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path,
            image_bytes,
            {"content-type": "image/jpeg", "upsert": "true"},
        )
        return bucket.get_public_url(path)

    def delete_image(self, meal_id: str) -> None:
        self.client.storage.from_(self.bucket).remove([_image_path(meal_id)])


def _image_path(meal_id: str) -> str:
    return f"meals/{meal_id}.jpg"
