"""
MongoDBHandler query-shape tests.

Collections are replaced with mocks, so these check the filters, projections
and update documents sent to the driver rather than database behavior.
"""

import pytest
from bson import ObjectId
from unittest.mock import AsyncMock, MagicMock
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from conftest import CAT_ID, USER_ID
from domain import ErrorTools, GeoTools
from service import MongoClient


@pytest.fixture
def handler():
    handler = MongoClient.MongoDBHandler()
    handler.cats = MagicMock()
    handler.users = MagicMock()
    return handler


def _cursor(result):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=result)
    return cursor


class TestCatQueries:

    @pytest.mark.asyncio
    async def test_within_uses_geo_within_polygon(self, handler, cat_doc):
        handler.cats.find.return_value = _cursor([cat_doc])
        polygon = GeoTools.rectangle_bounds((10, 10), (0, 0))

        result = await handler.get_cats_within(polygon)

        assert result == [cat_doc]
        handler.cats.find.assert_called_once_with({"location": {"$geoWithin": {"$geometry": polygon}}})

    @pytest.mark.asyncio
    async def test_by_owner_filters_on_object_id(self, handler):
        handler.cats.find.return_value = _cursor([])

        assert await handler.get_cats_by_owner(str(USER_ID)) == []
        handler.cats.find.assert_called_once_with({"owner": USER_ID})

    @pytest.mark.asyncio
    async def test_get_cat_populates_public_owner_fields(self, handler):
        handler.cats.aggregate.return_value = _cursor([])

        assert await handler.get_cat(str(CAT_ID)) is None

        pipeline = handler.cats.aggregate.call_args.args[0]
        assert pipeline[0] == {"$match": {"_id": CAT_ID}}
        lookup = pipeline[1]["$lookup"]
        assert lookup["from"] == "users"
        assert lookup["pipeline"] == [{"$project": {"_id": 1, "user_name": 1, "email": 1}}]

    @pytest.mark.asyncio
    async def test_owner_update_sets_fields_on_owned_record(self, handler, cat_doc):
        handler.cats.find_one_and_update = AsyncMock(return_value=cat_doc)

        await handler.update_cat(str(CAT_ID), {"weight": 5.0}, owner_id=str(USER_ID))

        handler.cats.find_one_and_update.assert_awaited_once_with(
            {"_id": CAT_ID, "owner": USER_ID},
            {"$set": {"weight": 5.0}},
            return_document=ReturnDocument.AFTER,
        )

    @pytest.mark.asyncio
    async def test_empty_update_reads_current_record(self, handler, cat_doc):
        handler.cats.find_one = AsyncMock(return_value=cat_doc)
        handler.cats.find_one_and_update = AsyncMock()

        assert await handler.update_cat(str(CAT_ID), {}) == cat_doc
        handler.cats.find_one.assert_awaited_once_with({"_id": CAT_ID})
        handler.cats.find_one_and_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_with_owner_resolves_public_fields(self, handler, cat_doc):
        owner = {"_id": USER_ID, "user_name": "john_doe", "email": "john.doe@example.com"}
        handler.cats.find_one_and_delete = AsyncMock(return_value=dict(cat_doc))
        handler.users.find_one = AsyncMock(return_value=owner)

        cat = await handler.delete_cat(str(CAT_ID), with_owner=True)

        assert cat["owner"] == owner
        handler.users.find_one.assert_awaited_once_with(
            {"_id": USER_ID}, MongoClient.PUBLIC_USER_PROJECTION
        )

    @pytest.mark.asyncio
    async def test_driver_error_becomes_internal_error(self, handler):
        handler.cats.aggregate.side_effect = PyMongoError("socket closed")

        with pytest.raises(ErrorTools.InternalServerErrorException) as exc_info:
            await handler.get_cats()
        assert exc_info.value.status_code == 500
        assert "socket closed" in exc_info.value.detail


class TestUserQueries:

    @pytest.mark.asyncio
    async def test_list_excludes_password_and_role(self, handler):
        handler.users.find.return_value = _cursor([])

        await handler.get_users()

        handler.users.find.assert_called_once_with({}, {"password": 0, "role": 0})

    @pytest.mark.asyncio
    async def test_create_returns_document_with_id(self, handler):
        inserted_id = ObjectId()
        handler.users.insert_one = AsyncMock(return_value=MagicMock(inserted_id=inserted_id))

        user = await handler.create_user({"user_name": "john_doe", "email": "j@example.com"})

        assert user["_id"] == inserted_id

    @pytest.mark.asyncio
    async def test_duplicate_user_is_conflict(self, handler):
        handler.users.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key"))

        with pytest.raises(ErrorTools.ConflictException) as exc_info:
            await handler.create_user({"user_name": "john_doe", "email": "j@example.com"})
        assert exc_info.value.status_code == 409
