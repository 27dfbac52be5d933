"""
Unit tests for AdminService.

Tests cover:
- Data repair of the unitary/variant invariant
- Owner summaries and cross-owner reports
- Deletions on behalf of an owner
"""
import pytest

from pokefolio.core.exceptions import NotFoundError
from pokefolio.db.models.activity_log import ActivityType
from pokefolio.services.admin_service import AdminService, repair_item, summarize_owners
from pokefolio.services.portfolio_service import build_variant
from tests.factories import make_item


@pytest.fixture
def admin_service(mock_db_session, mock_portfolio_repository, mock_activity_logs):
    return AdminService(
        mock_db_session,
        repository=mock_portfolio_repository,
        activity_logs=mock_activity_logs
    )


class TestRepairItem:

    @pytest.mark.unit
    def test_variant_quantity_resynced(self):
        item = make_item(quantity=5, variants=[build_variant({}), build_variant({})])
        assert repair_item(item) is True
        assert item.quantity == 2

    @pytest.mark.unit
    def test_unitary_fields_cleared_on_variant_holding(self):
        item = make_item(quantity=1, purchase_price=4.0, variants=[build_variant({"purchase_price": 4})])
        assert repair_item(item) is True
        assert item.purchase_price is None
        assert item.quantity == 1

    @pytest.mark.unit
    def test_empty_variant_list_means_unitary(self):
        item = make_item(quantity=0, variants=[])
        assert repair_item(item) is True
        assert item.variants is None
        assert item.quantity == 1

    @pytest.mark.unit
    def test_consistent_item_untouched(self):
        assert repair_item(make_item(quantity=3, purchase_price=2.0)) is False


class TestReports:

    @pytest.mark.unit
    def test_summarize_owners_sorted_by_value(self):
        items = [
            make_item(id=1, owner_id="a", quantity=2, purchase_price=5.0),
            make_item(id=2, owner_id="b", quantity=1, purchase_price=50.0),
            make_item(id=3, owner_id="a", card_id="x", quantity=1),
        ]

        owners = summarize_owners(items)

        assert [o["owner_id"] for o in owners] == ["b", "a"]
        assert owners[1]["cards_count"] == 3
        assert owners[1]["distinct_cards"] == 2
        assert owners[1]["total_value"] == 10.0

    @pytest.mark.asyncio
    async def test_top_cards(self, admin_service, mock_portfolio_repository):
        mock_portfolio_repository.list_all_async.return_value = [
            make_item(id=1, owner_id="a", card_id="base1-4", quantity=2),
            make_item(id=2, owner_id="b", card_id="base1-4", quantity=1),
            make_item(id=3, owner_id="a", card_id="base1-2", quantity=1),
        ]

        cards = await admin_service.get_top_cards_async(limit=1)

        assert cards == [{
            "card_id": "base1-4",
            "name": "Dracaufeu",
            "set_name": "Set de Base",
            "image_url": "https://assets.tcgdex.net/fr/base/base1/4",
            "total_quantity": 3,
            "owners_count": 2,
        }]

    @pytest.mark.asyncio
    async def test_owner_without_items_not_found(self, admin_service):
        with pytest.raises(NotFoundError):
            await admin_service.get_owner_details_async("ghost")


class TestMutations:

    @pytest.mark.asyncio
    async def test_repair_reports_and_logs(
        self, admin_service, mock_portfolio_repository, mock_activity_logs, mock_db_session
    ):
        broken = make_item(id=9, quantity=4, variants=[build_variant({})])
        mock_portfolio_repository.list_all_async.return_value = [make_item(id=1), broken]

        report = await admin_service.repair_data_async()

        assert report.inspected == 2
        assert report.repaired == 1
        assert report.repaired_ids == [9]
        assert mock_activity_logs.log_async.call_args.args[1] == ActivityType.DATA_REPAIRED
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_empty_portfolio_not_found(self, admin_service, mock_portfolio_repository):
        mock_portfolio_repository.delete_by_owner_async.return_value = 0

        with pytest.raises(NotFoundError):
            await admin_service.delete_owner_portfolio_async("ghost")

    @pytest.mark.asyncio
    async def test_delete_owner_item(self, admin_service, mock_portfolio_repository):
        item = make_item(id=3, owner_id="a")
        mock_portfolio_repository.get_owned_async.return_value = item

        await admin_service.delete_owner_item_async("a", 3)

        mock_portfolio_repository.delete.assert_awaited_once_with(item)
