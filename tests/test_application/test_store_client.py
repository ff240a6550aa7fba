"""
Tests for the store gateway: query builder, row policies, procedures.
"""
from decimal import Decimal

import pytest

from app.auth import AuthUser
from app.infrastructure.db.models import Agency, AgencyMember, Profile
from app.infrastructure.store.client import StoreClient


def _expense(user_id, description="FINANCIAL_EXPENSE: Tape", value="10.00"):
    return {
        "user_id": user_id,
        "description": description,
        "value": Decimal(value),
        "category": "",
        "month": "2024-05",
    }


def _agency(db, owner_id, members=()):
    agency = Agency(name="Studio", owner_id=owner_id)
    db.add(agency)
    db.flush()
    db.add(AgencyMember(agency_id=agency.id, user_id=owner_id, role="owner"))
    for uid in members:
        db.add(AgencyMember(agency_id=agency.id, user_id=uid, role="member"))
    db.commit()
    return agency


class TestQueryBuilder:
    def test_insert_then_select(self, alice, store_for):
        store = store_for(alice)
        res = store.table("expenses").insert(_expense(alice.id)).execute()
        assert res.error is None
        assert res.data[0]["id"]

        res = store.table("expenses").select("id, description").eq("user_id", alice.id).execute()
        assert res.error is None
        assert res.data == [{"id": res.data[0]["id"], "description": "FINANCIAL_EXPENSE: Tape"}]

    def test_or_ilike(self, alice, store_for):
        store = store_for(alice)
        store.table("expenses").insert([
            _expense(alice.id, "FINANCIAL_INCOME: Job", "-50"),
            _expense(alice.id, "FINANCIAL_EXPENSE: Card", "5"),
            _expense(alice.id, "Groceries", "7"),
        ]).execute()
        res = (
            store.table("expenses").select("description")
            .or_(("description", "ilike", "FINANCIAL_INCOME:%"),
                 ("description", "ilike", "FINANCIAL_EXPENSE:%"))
            .order("description")
            .execute()
        )
        assert [r["description"] for r in res.data] == [
            "FINANCIAL_EXPENSE: Card", "FINANCIAL_INCOME: Job",
        ]

    def test_limit(self, alice, store_for):
        store = store_for(alice)
        store.table("expenses").insert([_expense(alice.id) for _ in range(3)]).execute()
        res = store.table("expenses").select("*").limit(2).execute()
        assert len(res.data) == 2

    def test_single_requires_exactly_one_row(self, alice, store_for):
        store = store_for(alice)
        res = store.table("profiles").select("*").eq("id", alice.id).single().execute()
        assert res.error is None
        assert res.data["id"] == alice.id

        res = store.table("profiles").select("*").eq("id", "missing").single().execute()
        assert res.data is None
        assert res.error.code == "not_found"

    def test_unknown_column(self, alice, store_for):
        res = store_for(alice).table("expenses").select("*").eq("nope", 1).execute()
        assert res.error.code == "unknown_column"

    def test_unknown_collection(self, alice, store_for):
        res = store_for(alice).table("users").select("*").execute()
        assert res.error.code == "unknown_collection"

    def test_unauthenticated(self, store_for):
        res = store_for(None).table("expenses").select("*").execute()
        assert res.error.code == "unauthenticated"

    def test_update_and_delete_return_rows(self, alice, store_for):
        store = store_for(alice)
        row = store.table("expenses").insert(_expense(alice.id)).execute().data[0]

        res = store.table("expenses").update({"category": "gear"}).eq("id", row["id"]).execute()
        assert [r["category"] for r in res.data] == ["gear"]

        res = store.table("expenses").delete().eq("id", row["id"]).execute()
        assert [r["id"] for r in res.data] == [row["id"]]
        assert store.table("expenses").select("*").execute().data == []


class TestRowPolicies:
    def test_expenses_isolated_per_user(self, alice, bob, store_for):
        store_for(alice).table("expenses").insert(_expense(alice.id)).execute()
        assert store_for(bob).table("expenses").select("*").execute().data == []

    def test_insert_for_other_user_rejected(self, alice, bob, store_for):
        res = store_for(bob).table("expenses").insert(_expense(alice.id)).execute()
        assert res.error.code == "row_policy"
        assert store_for(alice).table("expenses").select("*").execute().data == []

    def test_update_other_users_row_matches_nothing(self, alice, bob, store_for):
        row = store_for(alice).table("expenses").insert(_expense(alice.id)).execute().data[0]
        res = store_for(bob).table("expenses").update({"category": "x"}).eq("id", row["id"]).execute()
        assert res.error is None
        assert res.data == []

    def test_profiles_only_own(self, alice, bob, store_for):
        res = store_for(bob).table("profiles").select("*").execute()
        assert [r["id"] for r in res.data] == [bob.id]

    def test_agency_boards_visible_to_members(self, db_session, alice, bob, make_user, store_for):
        carol = make_user("carol@example.com")
        agency = _agency(db_session, alice.id, members=[bob.id])

        res = store_for(bob).table("kanban_boards").insert({
            "agency_id": agency.id, "user_id": None, "board_data": {"title": "T"},
        }).execute()
        assert res.error is None

        assert len(store_for(alice).table("kanban_boards").select("*").execute().data) == 1
        assert store_for(carol).table("kanban_boards").select("*").execute().data == []

    def test_agency_board_insert_needs_membership(self, db_session, alice, bob, store_for):
        agency = _agency(db_session, alice.id)
        res = store_for(bob).table("kanban_boards").insert({
            "agency_id": agency.id, "user_id": None, "board_data": {},
        }).execute()
        assert res.error.code == "row_policy"

    def test_only_owner_adds_members(self, db_session, alice, bob, store_for):
        agency = _agency(db_session, alice.id, members=[bob.id])
        res = store_for(bob).table("agency_members").insert({
            "agency_id": agency.id, "user_id": bob.id, "role": "owner",
        }).execute()
        assert res.error.code == "row_policy"


class TestProcedures:
    def test_requires_authentication(self, db_session, alice):
        res = StoreClient(db_session, None).rpc("get_profile_for_admin", {"target_user_id": alice.id})
        assert res.error.code == "unauthenticated"

    def test_unknown_procedure(self, alice, store_for):
        res = store_for(alice).rpc("drop_everything", {})
        assert res.error.code == "unknown_procedure"

    def test_non_admin_forbidden(self, alice, bob, store_for):
        res = store_for(bob).rpc("get_profile_for_admin", {"target_user_id": alice.id})
        assert res.error.code == "forbidden"

    def test_admin_reads_any_profile(self, db_session, admin, alice, store_for):
        profile = db_session.get(Profile, alice.id)
        profile.subscription = "premium"
        profile.subscription_data = {"status": "active"}
        db_session.commit()

        res = store_for(admin).rpc("get_profile_for_admin", {"target_user_id": alice.id})
        assert res.error is None
        assert res.data == [{
            "id": alice.id, "subscription": "premium", "subscription_data": {"status": "active"},
        }]

    def test_admin_update_ignores_other_fields(self, db_session, admin, alice, store_for):
        res = store_for(admin).rpc("admin_update_profile", {
            "target_user_id": alice.id,
            "update_data": {"subscription": "basic", "id": "hijack"},
        })
        assert res.error is None
        db_session.expire_all()
        profile = db_session.get(Profile, alice.id)
        assert profile.subscription == "basic"
        assert profile.updated_at is not None

    def test_admin_update_missing_profile(self, admin, store_for):
        res = store_for(admin).rpc("admin_update_profile", {
            "target_user_id": "missing", "update_data": {"subscription": "basic"},
        })
        assert res.error.code == "not_found"

    def test_bad_parameters(self, admin, store_for):
        res = store_for(admin).rpc("get_profile_for_admin", {"user": "x"})
        assert res.error.code == "backend"

    def test_error_inside_procedure_propagates(self, admin, store_for, monkeypatch):
        from app.infrastructure.store.procedures import PROCEDURES

        def broken(db, caller, target_user_id):
            return len(None)

        monkeypatch.setitem(PROCEDURES, "broken", broken)
        with pytest.raises(TypeError):
            store_for(admin).rpc("broken", {"target_user_id": "x"})

    def test_allowlisted_email_counts_as_admin(self, alice, store_for, monkeypatch):
        from app.config import Settings
        settings = Settings(DATABASE_URL="sqlite://", SUPER_ADMIN_EMAILS="Boss@Example.com", _env_file=None)
        monkeypatch.setattr("app.auth.get_settings", lambda: settings)

        boss = AuthUser(id="boss-id", email="boss@example.com")
        res = store_for(boss).rpc("get_profile_for_admin", {"target_user_id": alice.id})
        assert res.error is None
        assert res.data[0]["id"] == alice.id
