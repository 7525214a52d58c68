# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import datetime
from typing import Callable

import httpx
import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from atlaspy import Collection, SavableDocument
from atlaspy.constants import SortMode
from atlaspy.data.operation import OperationKind, PendingOperation
from atlaspy.data.utils.extended_json_converters import (
    convert_ejson_date_object_to_datetime,
)
from atlaspy.exceptions import (
    DataAPIFaultyResponseException,
    DataAPIHttpException,
    DataAPITimeoutException,
    InvalidOperationException,
)
from atlaspy.utils.api_options import APIOptions

from ..conftest import (
    TEST_API_KEY,
    action_path,
    logged_payloads,
    routing_fields,
)


class TestCollectionSync:
    @pytest.mark.describe("test of update_one request body, sync")
    def test_update_one_body_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        filter0 = {"status": "open", "n": {"$gt": 1}}
        update0 = {"$set": {"status": "closed"}}
        httpserver.expect_oneshot_request(
            action_path("updateOne"),
            method="POST",
            headers={"Api-Key": TEST_API_KEY, "Content-Type": "application/json"},
            json={**routing_fields(), "filter": filter0, "update": update0},
        ).respond_with_json({"matchedCount": 1, "modifiedCount": 1})

        result = collection.update_one(filter0, update0)
        assert result == {"matchedCount": 1, "modifiedCount": 1}
        httpserver.check_assertions()

    @pytest.mark.describe("test of update_many and delete_many request bodies, sync")
    def test_many_operations_bodies_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("updateMany"),
            json={
                **routing_fields(),
                "filter": {"a": 1},
                "update": {"$inc": {"b": 1}},
            },
        ).respond_with_json({"matchedCount": 3, "modifiedCount": 3})
        httpserver.expect_oneshot_request(
            action_path("deleteMany"),
            json={**routing_fields(), "filter": {"a": 1}},
        ).respond_with_json({"deletedCount": 3})

        assert collection.update_many({"a": 1}, {"$inc": {"b": 1}}) == {
            "matchedCount": 3,
            "modifiedCount": 3,
        }
        assert collection.delete_many({"a": 1}) == {"deletedCount": 3}
        httpserver.check_assertions()

    @pytest.mark.describe("test of delete_one request body, sync")
    def test_delete_one_body_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("deleteOne"),
            json={**routing_fields(), "filter": {"name": "x"}},
        ).respond_with_json({"deletedCount": 1})

        assert collection.delete_one({"name": "x"}) == {"deletedCount": 1}
        httpserver.check_assertions()

    @pytest.mark.describe("test of empty filters refused on updates/deletes, sync")
    def test_empty_filter_refused_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        with pytest.raises(InvalidOperationException) as exc_info:
            collection.update_one({}, {"$set": {"a": 1}})
        assert exc_info.value.operation_kind == "updateOne"
        with pytest.raises(InvalidOperationException):
            collection.update_many({}, {"$set": {"a": 1}})
        with pytest.raises(InvalidOperationException):
            collection.delete_one({})
        with pytest.raises(InvalidOperationException) as exc_info_d:
            collection.delete_many({})
        assert exc_info_d.value.operation_kind == "deleteMany"
        # it is also a ValueError:
        with pytest.raises(ValueError):
            collection.delete_one({})

        assert len(httpserver.log) == 0
        assert collection.pending_operation == PendingOperation()

    @pytest.mark.describe("test of find chain request body, sync")
    def test_find_chain_body_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
            json={
                **routing_fields(),
                "filter": {"status": "open"},
                "sort": {"name": 1},
                "limit": 2,
                "projection": {"name": 1, "status": 1},
            },
        ).respond_with_json({"documents": [{"_id": "a", "name": "Ada"}]})

        docs = (
            collection.find({"status": "open"})
            .sort({"name": SortMode.ASCENDING})
            .limit(2)
            .select("name status")
            .exec()
        )
        assert docs == [{"_id": "a", "name": "Ada"}]
        httpserver.check_assertions()

    @pytest.mark.describe("test of chain methods returning the same object, sync")
    def test_chain_identity_sync(self, collection: Collection) -> None:
        assert collection.find({}) is collection
        assert collection.sort({"a": -1}) is collection
        assert collection.limit(3) is collection
        assert collection.select({"a": 1}) is collection
        assert collection.pending_operation == PendingOperation(
            kind=OperationKind.FIND,
            filter={},
            sort={"a": -1},
            limit=3,
            projection={"a": 1},
        )

    @pytest.mark.describe("test of find with settings staged before find, sync")
    def test_find_keeps_earlier_settings_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
            json={
                **routing_fields(),
                "filter": {"x": 1},
                "sort": {"x": -1},
                "limit": 1,
                "projection": {},
            },
        ).respond_with_json({"documents": []})

        assert collection.sort({"x": -1}).limit(1).find({"x": 1}).exec() == []
        httpserver.check_assertions()

    @pytest.mark.describe("test of unset limit left out of the request, sync")
    def test_find_no_limit_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_json({"documents": [{"a": 1}]})

        assert collection.find().exec() == [{"a": 1}]
        (payload,) = logged_payloads(httpserver)
        assert payload == {
            **routing_fields(),
            "filter": {},
            "sort": {},
            "projection": {},
        }

    @pytest.mark.describe("test of negative limit refused, sync")
    def test_negative_limit_sync(self, collection: Collection) -> None:
        with pytest.raises(ValueError):
            collection.find({}).limit(-1)

    @pytest.mark.describe("test of string and dictionary projections, sync")
    def test_select_forms_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_request(
            action_path("find"),
        ).respond_with_json({"documents": []})

        collection.find({"k": "v"}).select("a b c").exec()
        collection.find({"k": "v"}).select({"a": 1, "b": 1, "c": 1}).exec()
        collection.find({"k": "v"}).select(["a", "b", "c"]).exec()
        collection.find({"k": "v"}).select("  a   b c ").exec()

        payloads = logged_payloads(httpserver)
        assert len(payloads) == 4
        assert payloads[0]["projection"] == {"a": 1, "b": 1, "c": 1}
        assert all(payload == payloads[0] for payload in payloads)

    @pytest.mark.describe("test of find without documents in response, sync")
    def test_find_missing_documents_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_json({})
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_json({"documents": None})

        assert collection.find({"status": "open"}).exec() == []
        assert collection.find({"status": "open"}).exec() == []

    @pytest.mark.describe("test of find_one, sync")
    def test_find_one_sync(self, httpserver: HTTPServer, collection: Collection) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
            json={**routing_fields(), "filter": {"_id": "abc"}, "projection": {}},
        ).respond_with_json({"document": {"_id": "abc", "v": 1}})
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_json({})

        doc = collection.find_one({"_id": "abc"})
        assert doc == {"_id": "abc", "v": 1}
        assert isinstance(doc, SavableDocument)
        assert callable(doc.save)

        assert collection.find_one({"_id": "zzz"}) is None
        httpserver.check_assertions()

    @pytest.mark.describe("test of find_one with staged projection, sync")
    def test_find_one_projection_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
            json={
                **routing_fields(),
                "filter": {"name": "Ada"},
                "projection": {"name": 1},
            },
        ).respond_with_json({"document": {"_id": "a", "name": "Ada"}})

        doc = collection.select("name").find_one({"name": "Ada"})
        assert doc == {"_id": "a", "name": "Ada"}
        httpserver.check_assertions()

    @pytest.mark.describe("test of find_by_id and find_by_id_and_update, sync")
    def test_by_id_methods_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
            json={
                **routing_fields(),
                "filter": {"_id": {"$oid": "abc"}},
                "projection": {},
            },
        ).respond_with_json({"document": {"_id": "abc"}})
        httpserver.expect_oneshot_request(
            action_path("updateOne"),
            json={
                **routing_fields(),
                "filter": {"_id": {"$oid": "abc"}},
                "update": {"$set": {"v": 3}},
            },
        ).respond_with_json({"matchedCount": 1, "modifiedCount": 1})

        assert collection.find_by_id("abc") == {"_id": "abc"}
        assert collection.find_by_id_and_update("abc", {"$set": {"v": 3}}) == {
            "matchedCount": 1,
            "modifiedCount": 1,
        }
        httpserver.check_assertions()

    @pytest.mark.describe("test of insert_one timestamps, sync")
    def test_insert_one_stamping_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("insertOne"),
        ).respond_with_json({"insertedId": "new_id"})

        time_before = datetime.datetime.now(datetime.timezone.utc)
        result = collection.insert_one(
            {"name": "x", "createdAt": "caller-value", "updatedAt": 123}
        )
        time_after = datetime.datetime.now(datetime.timezone.utc)
        assert result == {"insertedId": "new_id"}

        (payload,) = logged_payloads(httpserver)
        assert set(payload.keys()) == {*routing_fields().keys(), "document"}
        document = payload["document"]
        assert document["name"] == "x"
        assert set(document.keys()) == {"name", "createdAt", "updatedAt"}
        assert document["createdAt"] == document["updatedAt"]
        stamp = convert_ejson_date_object_to_datetime(document["createdAt"])
        assert time_before - datetime.timedelta(milliseconds=1) <= stamp
        assert stamp <= time_after

    @pytest.mark.describe("test of create as insert_one, sync")
    def test_create_sync(self, httpserver: HTTPServer, collection: Collection) -> None:
        httpserver.expect_oneshot_request(
            action_path("insertOne"),
        ).respond_with_json({"insertedId": "id1"})

        source_doc = {"name": "y"}
        assert collection.create(source_doc) == {"insertedId": "id1"}
        assert source_doc == {"name": "y"}
        (payload,) = logged_payloads(httpserver)
        assert payload["document"]["name"] == "y"
        assert "createdAt" in payload["document"]

    @pytest.mark.describe("test of saving a found document with _id, sync")
    def test_save_with_id_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_json(
            {
                "document": {
                    "_id": "abc",
                    "v": 1,
                    "createdAt": "2024-01-01T00:00:00.000Z",
                    "updatedAt": "2024-01-01T00:00:00.000Z",
                }
            }
        )
        httpserver.expect_oneshot_request(
            action_path("updateOne"),
            json={
                **routing_fields(),
                "filter": {"_id": {"$oid": "abc"}},
                "update": {
                    "$currentDate": {"updatedAt": True},
                    "$set": {"_id": {"$oid": "abc"}, "v": 2},
                },
            },
        ).respond_with_json({"matchedCount": 1, "modifiedCount": 1})

        doc = collection.find_one({"_id": "abc"})
        assert doc is not None
        doc["v"] = 2
        assert doc.save() == {"matchedCount": 1, "modifiedCount": 1}
        # the local document is left as it is
        assert doc["_id"] == "abc"
        assert "createdAt" in doc
        httpserver.check_assertions()

    @pytest.mark.describe("test of saving a found document twice, sync")
    def test_save_twice_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_json({"document": {"_id": "abc", "v": 1}})
        httpserver.expect_request(
            action_path("updateOne"),
        ).respond_with_json({"matchedCount": 1, "modifiedCount": 1})

        doc = collection.find_one({"_id": "abc"})
        assert doc is not None
        doc.save()
        doc.save()
        update_payloads = logged_payloads(httpserver)[1:]
        assert len(update_payloads) == 2
        assert update_payloads[0] == update_payloads[1]
        assert update_payloads[1]["filter"] == {"_id": {"$oid": "abc"}}

    @pytest.mark.describe("test of saving a found document without _id, sync")
    def test_save_without_id_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_json({"document": {"name": "anon"}})
        httpserver.expect_oneshot_request(
            action_path("insertOne"),
        ).respond_with_json({"insertedId": "gen_id"})

        doc = collection.find_one({"name": "anon"})
        assert doc is not None
        assert doc.save() == {"insertedId": "gen_id"}
        insert_payload = logged_payloads(httpserver)[1]
        assert insert_payload["document"]["name"] == "anon"
        assert (
            insert_payload["document"]["createdAt"]
            == insert_payload["document"]["updatedAt"]
        )
        httpserver.check_assertions()

    @pytest.mark.describe("test of state reset after a successful execution, sync")
    def test_reset_after_success_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_request(
            action_path("find"),
        ).respond_with_json({"documents": []})

        collection.find({"a": 1}).sort({"a": 1}).limit(5).select("a").exec()
        assert collection.pending_operation == PendingOperation()
        collection.find().exec()
        payloads = logged_payloads(httpserver)
        assert payloads[1] == {
            **routing_fields(),
            "filter": {},
            "sort": {},
            "projection": {},
        }

    @pytest.mark.describe("test of state reset after an HTTP error, sync")
    def test_reset_after_http_error_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_json(
            {"error": "no authentication methods were specified", "error_code": "X"},
            status=401,
        )
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_json({"documents": [{"a": 0}]})

        with pytest.raises(DataAPIHttpException) as exc_info:
            collection.find({"a": 1}).sort({"a": 1}).limit(5).select("a").exec()
        assert isinstance(exc_info.value, httpx.HTTPStatusError)
        assert exc_info.value.response.status_code == 401
        assert exc_info.value.error_descriptors[0].error_code == "X"
        assert collection.pending_operation == PendingOperation()

        assert collection.find().exec() == [{"a": 0}]
        assert logged_payloads(httpserver)[1] == {
            **routing_fields(),
            "filter": {},
            "sort": {},
            "projection": {},
        }

    @pytest.mark.describe("test of state reset after a refused operation, sync")
    def test_reset_after_invalid_operation_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        collection.sort({"a": 1}).limit(5)
        with pytest.raises(InvalidOperationException):
            collection.update_one({}, {"$set": {"a": 1}})
        assert collection.pending_operation == PendingOperation()

    @pytest.mark.describe("test of state reset after a connection failure, sync")
    def test_reset_after_connection_failure_sync(
        self, collection: Collection
    ) -> None:
        unreachable = collection.with_options(
            api_options=APIOptions(endpoint_base="http://127.0.0.1:1/unreachable"),
        )
        with pytest.raises(httpx.TransportError):
            unreachable.find({"a": 1}).limit(3).exec()
        assert unreachable.pending_operation == PendingOperation()

    @pytest.mark.describe("test of unparseable responses, sync")
    def test_faulty_response_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_data("{unparseable")
        httpserver.expect_oneshot_request(
            action_path("findOne"),
        ).respond_with_json([1, 2])

        with pytest.raises(DataAPIFaultyResponseException):
            collection.find_one({"a": 1})
        with pytest.raises(DataAPIFaultyResponseException):
            collection.find_one({"a": 1})
        assert collection.pending_operation == PendingOperation()

    @pytest.mark.describe("test of mutation responses passed through, sync")
    def test_mutation_passthrough_sync(
        self, httpserver: HTTPServer, collection: Collection
    ) -> None:
        odd_response = {"something": ["else"], "document": {"_id": 1}}
        httpserver.expect_oneshot_request(
            action_path("updateOne"),
        ).respond_with_json(odd_response)

        assert collection.update_one({"a": 1}, {"$set": {"b": 2}}) == odd_response

    @pytest.mark.describe("test of Collection instantiation and options, sync")
    def test_collection_options_sync(self, collection: Collection) -> None:
        assert collection.name == "users"
        assert collection.database == "test_db"
        assert collection == collection.with_options()
        other_key = collection.with_options(api_key="another-key")
        assert other_key != collection
        assert other_key.api_options.api_key == "another-key"
        assert other_key.with_options(api_key=TEST_API_KEY) == collection
        assert collection.to_async().to_sync() == collection
        assert TEST_API_KEY not in repr(collection)

    @pytest.mark.describe("test of Collection requiring the connection settings")
    def test_collection_required_settings(self, collection: Collection) -> None:
        with pytest.raises(ValueError):
            Collection(
                "c",
                api_options=collection.api_options.with_override(
                    APIOptions(endpoint_base=None)
                ),
            )
        with pytest.raises(ValueError):
            Collection(
                "c",
                api_options=collection.api_options.with_override(
                    APIOptions(cluster=None)
                ),
            )
        with pytest.raises(ValueError):
            Collection(
                "c",
                api_options=collection.api_options.with_override(
                    APIOptions(database=None)
                ),
            )

    @pytest.mark.describe("test of the request timeout setting, sync")
    def test_request_timeout_sync(
        self,
        httpserver: HTTPServer,
        collection: Collection,
        slow_handler: Callable[[Request], Response],
    ) -> None:
        httpserver.expect_oneshot_request(
            action_path("find"),
        ).respond_with_handler(slow_handler)

        impatient = collection.with_options(
            api_options=APIOptions(request_timeout_ms=100),
        )
        with pytest.raises(DataAPITimeoutException) as exc_info:
            impatient.find({"a": 1}).exec()
        assert "request_timeout_ms" in exc_info.value.text
        assert exc_info.value.endpoint is not None
        assert exc_info.value.endpoint.endswith("/action/find")
        assert impatient.pending_operation == PendingOperation()
