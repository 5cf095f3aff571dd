"""
Test suite for batch execution and bulk operations.

Tests the batch call wrapper, the sent/received count invariant, chunking
to the batch size and identifier checks of bulk updates.
"""

import pytest

from bitrix24.core.batch import (
    BatchExecutor,
    chunked,
    create_result_with,
    ordered_results,
    require_identifier,
)
from bitrix24.core.commands import build_commands
from bitrix24.core.exceptions import (
    BatchError,
    CountMismatchError,
    IdentifierMissingError,
    RelationNotFoundError,
)

from tests.conftest import batch_response


@pytest.fixture
def executor(dispatcher) -> BatchExecutor:
    return BatchExecutor(dispatcher, batch_size=50)


# ============================================================================
# Test Helpers
# ============================================================================

class TestChunked:
    """Tests for splitting items into chunks."""

    def test_exact_and_remainder(self):
        """Test chunk sizes with a remainder."""
        chunks = list(chunked([1, 2, 3, 4, 5], 2))

        assert chunks == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        """Test that no items produce no chunks."""
        assert list(chunked([], 50)) == []

    def test_invalid_size(self):
        """Test that the chunk size must be positive."""
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestOrderedResults:
    """Tests for normalizing batch results."""

    def test_list_results(self):
        """Test that array results are kept in order."""
        assert ordered_results([10, 11], ["0", "1"]) == [10, 11]

    def test_mapping_results_follow_labels(self):
        """Test that keyed results follow the submitted label order."""
        assert ordered_results({"1": "b", "0": "a"}, ["0", "1"]) == ["a", "b"]

    def test_unexpected_keys_still_counted(self):
        """Test that results outside the submitted labels are not dropped."""
        assert len(ordered_results({"0": "a", "7": "z"}, ["0"])) == 2

    def test_missing_results(self):
        """Test that an absent result collection is empty."""
        assert ordered_results(None, ["0"]) == []


# ============================================================================
# Test Batch Request
# ============================================================================

class TestBatchRequest:
    """Tests for sending a command set as one batch."""

    def test_payload_shape(self, executor, transport):
        """Test the batch action and its halt/cmd parameters."""
        transport.add(batch_response([1, 2]))
        commands = build_commands("crm.deal.delete", [{"id": 1}, {"id": 2}])

        executor.batch_request(commands, halt=False)

        assert transport.actions == ["batch"]
        assert transport.params[0] == {
            "halt": 0,
            "cmd": ["crm.deal.delete?id=1", "crm.deal.delete?id=2"],
        }

    def test_halt_flag(self, executor, transport):
        """Test that halt-on-error is sent as 1."""
        transport.add(batch_response({"DEAL": {"ID": "1"}}))

        executor.batch_request({"DEAL": "crm.deal.get?id=1"})

        assert transport.params[0]["halt"] == 1
        assert transport.params[0]["cmd"] == {"DEAL": "crm.deal.get?id=1"}

    def test_returns_results_unmodified(self, executor, transport):
        """Test that the per-command results are returned as sent by the server."""
        results = {"DEAL": {"ID": "1"}, "CONTACTS": [{"CONTACT_ID": 3}]}
        transport.add(batch_response(results))

        assert executor.batch_request({"DEAL": "a?", "CONTACTS": "b?"}) == results

    def test_result_error_raises(self, executor, transport):
        """Test that any per-command error fails the whole batch."""
        transport.add(batch_response(
            {"0": 101, "2": 103},
            errors={"1": {"error": "", "error_description": "Not found"}},
        ))
        commands = build_commands("crm.deal.add", [{"fields": {}}] * 3)

        with pytest.raises(BatchError) as exc_info:
            executor.batch_request(commands)

        error = exc_info.value
        assert error.errors == {"1": {"error": "", "error_description": "Not found"}}
        assert "crm.deal.add" in error.commands_json
        assert "Not found" in error.response_json

    def test_empty_error_collection_passes(self, executor, transport):
        """Test that an empty error object is not an error."""
        transport.add(batch_response([True], errors={}))

        assert executor.batch_request(["crm.deal.delete?id=1"]) == [True]


# ============================================================================
# Test Bulk Operations
# ============================================================================

class TestBulk:
    """Tests for the chunked bulk primitive."""

    def test_results_in_submitted_order(self, executor, transport):
        """Test that N commands with N results return N results in order."""
        transport.add(batch_response({"0": 11, "1": 12, "2": 13}))

        results = executor.bulk("crm.deal.add", ["a", "b", "c"], lambda title: {"fields": {"TITLE": title}})

        assert results == [11, 12, 13]
        assert transport.params[0]["cmd"] == [
            "crm.deal.add?fields%5BTITLE%5D=a",
            "crm.deal.add?fields%5BTITLE%5D=b",
            "crm.deal.add?fields%5BTITLE%5D=c",
        ]

    @pytest.mark.parametrize("received", [[11, 12], [11, 12, 13, 14]])
    def test_count_mismatch(self, executor, transport, received):
        """Test that fewer or more results than commands fail with exact counts."""
        transport.add(batch_response(received))

        with pytest.raises(CountMismatchError) as exc_info:
            executor.bulk("crm.deal.add", ["a", "b", "c"], lambda title: {"fields": {"TITLE": title}})

        assert exc_info.value.sent == 3
        assert exc_info.value.received == len(received)
        assert exc_info.value.response_json

    def test_chunks_to_batch_size(self, dispatcher, transport):
        """Test that items are split into batches no larger than the batch size."""
        executor = BatchExecutor(dispatcher, batch_size=2)
        transport.add(batch_response([1, 2]))
        transport.add(batch_response([3, 4]))
        transport.add(batch_response([5]))

        results = executor.bulk("crm.deal.delete", [1, 2, 3, 4, 5], lambda i: {"id": i})

        assert results == [1, 2, 3, 4, 5]
        assert [len(params["cmd"]) for params in transport.params] == [2, 2, 1]
        assert transport.params[2]["cmd"] == ["crm.deal.delete?id=5"]

    def test_no_items_no_calls(self, executor, transport):
        """Test that an empty input makes no requests."""
        assert executor.bulk("crm.deal.delete", [], lambda i: {"id": i}) == []
        assert transport.calls == []

    def test_mismatch_in_later_chunk_keeps_earlier_sent(self, dispatcher, transport):
        """Test that a failing chunk stops the operation after earlier chunks ran."""
        executor = BatchExecutor(dispatcher, batch_size=2)
        transport.add(batch_response([1, 2]))
        transport.add(batch_response([3]))

        with pytest.raises(CountMismatchError) as exc_info:
            executor.bulk("crm.deal.delete", [1, 2, 3, 4], lambda i: {"id": i})

        assert (exc_info.value.sent, exc_info.value.received) == (2, 1)
        assert len(transport.calls) == 2

    def test_missing_identifier_fails_before_sending(self, executor, transport):
        """Test that one item without ID among five fails with its index and no call."""
        items = [{"ID": 1}, {"ID": 2}, {"ID": 3}, {"TITLE": "no id"}, {"ID": 5}]

        with pytest.raises(IdentifierMissingError) as exc_info:
            executor.bulk(
                "crm.deal.update",
                items,
                lambda item: {"id": item["ID"], "fields": item},
                validate=require_identifier("ID"),
            )

        assert exc_info.value.index == 3
        assert exc_info.value.field == "ID"
        assert "no id" in exc_info.value.item_json
        assert transport.calls == []

    def test_identifier_index_is_position_in_input(self, dispatcher, transport):
        """Test that the reported index counts across chunks."""
        executor = BatchExecutor(dispatcher, batch_size=2)
        transport.add(batch_response([True, True]))
        items = [{"ID": 1}, {"ID": 2}, {"ID": 3}, {"ID": ""}]

        with pytest.raises(IdentifierMissingError) as exc_info:
            executor.bulk("crm.deal.update", items, lambda item: {"id": item["ID"]},
                          validate=require_identifier())

        assert exc_info.value.index == 3
        assert len(transport.calls) == 1


# ============================================================================
# Test Composed Results
# ============================================================================

class TestCreateResultWith:
    """Tests for merging an entity with its relations."""

    def test_merges_relations(self):
        """Test that relations are added next to the base fields."""
        result = {
            "DEAL": {"ID": "1", "TITLE": "Deal"},
            "CONTACTS": [{"CONTACT_ID": 3}],
        }

        merged = create_result_with(result, "DEAL", ["CONTACTS"])

        assert merged == {"ID": "1", "TITLE": "Deal", "CONTACTS": [{"CONTACT_ID": 3}]}

    def test_does_not_mutate_input(self):
        """Test that the batch result is left intact."""
        result = {"DEAL": {"ID": "1"}, "PRODUCTS": []}

        create_result_with(result, "DEAL", ["PRODUCTS"])

        assert result["DEAL"] == {"ID": "1"}

    def test_missing_relation_raises(self):
        """Test that an absent relation label is a lookup failure."""
        with pytest.raises(RelationNotFoundError) as exc_info:
            create_result_with({"DEAL": {"ID": "1"}}, "DEAL", ["INVOICES"])

        assert isinstance(exc_info.value, LookupError)
        assert exc_info.value.label == "INVOICES"

    def test_missing_base_raises(self):
        """Test that the primary entity must be present."""
        with pytest.raises(RelationNotFoundError):
            create_result_with({"CONTACTS": []}, "DEAL", ["CONTACTS"])
