"""
JWT, password hashing, error formatting and upload handler tests.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from PIL.TiffImagePlugin import IFDRational

from domain import ErrorTools
from service import JWTService, UploadService


class TestValidationMessages:

    def test_one_segment_per_error_in_reported_order(self):
        errors = [
            {"loc": ("body", "user_name"), "msg": "too short"},
            {"loc": ("query", "topRight"), "msg": "invalid"},
        ]

        assert ErrorTools.format_validation_errors(errors) == "too short: user_name, invalid: topRight"

    def test_value_error_exception_builds_message_from_errors(self):
        exc = ErrorTools.ValueErrorException(errors=[{"loc": ("body", "email"), "msg": "bad"}])

        assert exc.status_code == 400
        assert exc.detail == "bad: email"


class TestJWTHandler:

    def test_requires_secret_key(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
        monkeypatch.setattr(JWTService, "load_dotenv", lambda *args, **kwargs: None)

        with pytest.raises(ValueError):
            JWTService.JWTHandler()

    def test_hash_uses_bcrypt_cost_12(self, jwt_handler):
        hashed = jwt_handler.hash_password("SecurePassword123!")

        assert hashed.startswith("$2b$12$")
        assert jwt_handler.verify_password("SecurePassword123!", hashed)
        assert not jwt_handler.verify_password("wrong", hashed)

    def test_token_round_trips_session_user(self, jwt_handler, admin_doc):
        session_user = jwt_handler.extract_session_user(jwt_handler.create_access_token(admin_doc))

        assert session_user.id == str(admin_doc["_id"])
        assert session_user.role == "admin"

    def test_token_signed_with_other_secret_is_rejected(self, jwt_handler, user_doc):
        other = JWTService.JWTHandler(secret_key="another-secret")

        assert jwt_handler.extract_session_user(other.create_access_token(user_doc)) is None


def _upload(content, filename="cat.jpg", content_type="image/jpeg"):
    upload = MagicMock()
    upload.filename = filename
    upload.content_type = content_type
    upload.read = AsyncMock(return_value=content)
    return upload


class TestUploadHandler:

    @pytest.mark.asyncio
    async def test_stores_under_random_name(self, upload_handler, sample_image_bytes):
        filename = await upload_handler.save(_upload(sample_image_bytes))

        assert filename.endswith(".jpg")
        assert upload_handler.path_of(filename).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, upload_handler):
        with pytest.raises(ErrorTools.BadRequestException):
            await upload_handler.save(_upload(b"%PDF", "doc.pdf", "application/pdf"))

    @pytest.mark.asyncio
    async def test_location_from_exif_gps(self, upload_handler, sample_image_bytes, monkeypatch):
        image = MagicMock()
        image.__enter__.return_value = image
        image.getexif.return_value.get_ifd.return_value = {
            1: "N",
            2: (60.0, 10.0, 12.0),
            3: "E",
            4: (24.0, 56.0, 24.0),
        }
        monkeypatch.setattr(UploadService.Image, "open", lambda path: image)
        filename = await upload_handler.save(_upload(sample_image_bytes))

        location = upload_handler.get_location(filename)

        assert location["type"] == "Point"
        lng, lat = location["coordinates"]
        assert lat == pytest.approx(60.17)
        assert lng == pytest.approx(24.94)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("latitude", [
        (IFDRational(1, 0), 0.0, 0.0),
        (95.0, 0.0, 0.0),
    ])
    async def test_unusable_gps_falls_back_to_default(
        self, upload_handler, sample_image_bytes, monkeypatch, latitude
    ):
        image = MagicMock()
        image.__enter__.return_value = image
        image.getexif.return_value.get_ifd.return_value = {
            1: "N",
            2: latitude,
            3: "E",
            4: (24.0, 56.0, 24.0),
        }
        monkeypatch.setattr(UploadService.Image, "open", lambda path: image)
        filename = await upload_handler.save(_upload(sample_image_bytes))

        assert upload_handler.get_location(filename) == {"type": "Point", "coordinates": [24.0, 60.0]}

    @pytest.mark.asyncio
    async def test_location_defaults_without_gps(self, upload_handler, sample_image_bytes):
        filename = await upload_handler.save(_upload(sample_image_bytes))

        assert upload_handler.get_location(filename) == {"type": "Point", "coordinates": [24.0, 60.0]}

    @pytest.mark.asyncio
    async def test_remove_tolerates_missing_file(self, upload_handler):
        await upload_handler.remove("missing.jpg")
