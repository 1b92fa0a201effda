"""Tests for policy evaluation."""

import pytest
from sqlalchemy.orm import sessionmaker

from chirp_access.core.errors import PolicyEvaluationError
from chirp_access.core.identity import IdentityContext
from chirp_access.db.session import Base, build_engine
from chirp_access.models import UserProfile
from chirp_access.policy import (
    AccessContext,
    MappingLookups,
    Operation,
    PolicyEngine,
    PolicyRegistry,
    Resource,
    SessionLookups,
    build_default_registry,
)

ADMINS = ["root"]
POST_STATUSES = {1: "approved", 2: "pending", 3: "rejected"}


@pytest.fixture()
def policy_engine():
    return PolicyEngine(build_default_registry("test"))


def ctx_for(user_id, admins=ADMINS, post_statuses=POST_STATUSES):
    identity = IdentityContext.for_user(user_id) if user_id else IdentityContext.anonymous()
    return AccessContext(identity=identity, lookups=MappingLookups(admins, post_statuses))


ANON = ctx_for(None)
ALICE = ctx_for("alice")
BOB = ctx_for("bob")
ROOT = ctx_for("root")


class TestPostVisibility:
    """Read rules for posts."""

    def test_anonymous_reads_only_approved_posts(self, policy_engine):
        assert not policy_engine.authorize(
            Resource.POST, Operation.READ, ANON, {"status": "pending", "user_id": "u1"}
        )
        assert policy_engine.authorize(
            Resource.POST, Operation.READ, ANON, {"status": "approved", "user_id": "u1"}
        )

    @pytest.mark.parametrize("status", ["pending", "approved", "rejected"])
    def test_owner_reads_own_post_in_any_status(self, policy_engine, status):
        assert policy_engine.authorize(
            Resource.POST, Operation.READ, ALICE, {"status": status, "user_id": "alice"}
        )

    def test_pending_post_hidden_from_other_users(self, policy_engine):
        assert not policy_engine.authorize(
            Resource.POST, Operation.READ, BOB, {"status": "pending", "user_id": "alice"}
        )

    def test_admin_reads_pending_post(self, policy_engine):
        assert policy_engine.authorize(
            Resource.POST, Operation.READ, ROOT, {"status": "pending", "user_id": "alice"}
        )

    def test_works_with_attribute_rows(self, policy_engine, pending_post):
        assert policy_engine.authorize(Resource.POST, Operation.READ, ALICE, pending_post)
        assert not policy_engine.authorize(Resource.POST, Operation.READ, BOB, pending_post)


class TestPostWrites:
    """Create, update and delete rules for posts."""

    @pytest.mark.parametrize("operation", [Operation.CREATE, Operation.UPDATE, Operation.DELETE])
    @pytest.mark.parametrize("owner", ["alice", None])
    def test_anonymous_cannot_write_posts(self, policy_engine, operation, owner):
        row = {"user_id": owner, "status": "pending"}
        assert not policy_engine.authorize(Resource.POST, operation, ANON, row)

    def test_create_requires_matching_owner(self, policy_engine):
        assert policy_engine.authorize(Resource.POST, Operation.CREATE, ALICE, {"user_id": "alice"})
        assert not policy_engine.authorize(Resource.POST, Operation.CREATE, ALICE, {"user_id": "bob"})

    def test_admin_cannot_create_for_someone_else(self, policy_engine):
        assert not policy_engine.authorize(Resource.POST, Operation.CREATE, ROOT, {"user_id": "alice"})

    def test_only_admin_deletes(self, policy_engine):
        row = {"user_id": "alice", "status": "approved"}
        assert not policy_engine.authorize(Resource.POST, Operation.DELETE, ALICE, row)
        assert policy_engine.authorize(Resource.POST, Operation.DELETE, ROOT, row)

    def test_update_by_owner_or_admin(self, policy_engine):
        row = {"user_id": "alice", "status": "pending"}
        assert policy_engine.authorize(Resource.POST, Operation.UPDATE, ALICE, row)
        assert policy_engine.authorize(Resource.POST, Operation.UPDATE, ROOT, row)
        assert not policy_engine.authorize(Resource.POST, Operation.UPDATE, BOB, row)


class TestAdminAdditivity:
    """Admin rules add to owner rules instead of replacing them."""

    def test_owner_admin_matches_both_rules(self, policy_engine):
        decision = policy_engine.explain(
            Resource.POST, Operation.UPDATE, ROOT, {"user_id": "root", "status": "pending"}
        )
        assert decision.allowed
        assert decision.granted_by == ("owner-update", "admin-update")
        assert decision.evaluated == ("owner-update", "admin-update")

    def test_admin_access_survives_losing_ownership(self, policy_engine):
        decision = policy_engine.explain(
            Resource.POST, Operation.UPDATE, ROOT, {"user_id": "someone-else", "status": "pending"}
        )
        assert decision.allowed
        assert decision.granted_by == ("admin-update",)

    def test_admin_keeps_ordinary_permissions(self, policy_engine):
        assert policy_engine.authorize(Resource.LIKE, Operation.DELETE, ROOT, {"user_id": "root"})
        assert not policy_engine.authorize(Resource.LIKE, Operation.DELETE, ROOT, {"user_id": "alice"})


class TestOtherResources:
    """Profiles, comments, reactions and admin keys."""

    def test_profiles_public_but_self_written(self, policy_engine):
        assert policy_engine.authorize(Resource.PROFILE, Operation.READ, ANON, {"user_id": "alice"})
        for operation in (Operation.CREATE, Operation.UPDATE):
            assert policy_engine.authorize(Resource.PROFILE, operation, ALICE, {"user_id": "alice"})
            assert not policy_engine.authorize(Resource.PROFILE, operation, BOB, {"user_id": "alice"})
            assert not policy_engine.authorize(Resource.PROFILE, operation, ANON, {"user_id": None})
        assert not policy_engine.authorize(Resource.PROFILE, Operation.DELETE, ALICE, {"user_id": "alice"})

    def test_comment_visibility_follows_parent_post(self, policy_engine):
        assert policy_engine.authorize(Resource.COMMENT, Operation.READ, ANON, {"post_id": 1})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.READ, ANON, {"post_id": 2})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.READ, ALICE, {"post_id": 3})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.READ, ANON, {"post_id": 99})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.READ, ANON, {})

    def test_comment_writes(self, policy_engine):
        assert not policy_engine.authorize(Resource.COMMENT, Operation.CREATE, ANON, {"post_id": 1})
        assert policy_engine.authorize(Resource.COMMENT, Operation.CREATE, ALICE, {"post_id": 1})
        assert policy_engine.authorize(Resource.COMMENT, Operation.UPDATE, ALICE, {"user_id": "alice"})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.UPDATE, BOB, {"user_id": "alice"})
        assert not policy_engine.authorize(Resource.COMMENT, Operation.DELETE, ALICE, {"user_id": "alice"})

    @pytest.mark.parametrize("resource", [Resource.LIKE, Resource.RETWEET])
    def test_reactions(self, policy_engine, resource):
        row = {"user_id": "alice", "post_id": 1}
        assert policy_engine.authorize(resource, Operation.READ, ANON, row)
        assert not policy_engine.authorize(resource, Operation.CREATE, ANON, row)
        assert policy_engine.authorize(resource, Operation.CREATE, BOB, row)
        assert policy_engine.authorize(resource, Operation.DELETE, ALICE, row)
        assert not policy_engine.authorize(resource, Operation.DELETE, BOB, row)

    def test_admin_keys_visible_only_while_unused(self, policy_engine):
        assert policy_engine.authorize(Resource.ADMIN_KEY, Operation.READ, ANON, {"is_used": False})
        assert not policy_engine.authorize(Resource.ADMIN_KEY, Operation.READ, ANON, {"is_used": True})
        assert not policy_engine.authorize(Resource.ADMIN_KEY, Operation.READ, ANON, {})

    @pytest.mark.parametrize("who", [ANON, ALICE, ROOT])
    def test_admin_key_update_never_allowed(self, policy_engine, who):
        assert not policy_engine.authorize(
            Resource.ADMIN_KEY, Operation.UPDATE, who, {"is_used": False, "key_code": "K"}
        )

    def test_filter_keeps_accessible_rows(self, policy_engine):
        rows = [
            {"id": 1, "user_id": "alice", "status": "pending"},
            {"id": 2, "user_id": "bob", "status": "pending"},
            {"id": 3, "user_id": "bob", "status": "approved"},
        ]
        visible = policy_engine.filter(Resource.POST, Operation.READ, ALICE, rows)
        assert [row["id"] for row in visible] == [1, 3]


class TestFailClosed:
    """Default deny and error propagation."""

    def test_no_rules_means_deny(self):
        policy_engine = PolicyEngine(PolicyRegistry("empty"))
        assert not policy_engine.authorize(Resource.PROFILE, Operation.READ, ROOT, {"user_id": "root"})

    def test_predicate_error_propagates(self):
        registry = PolicyRegistry("v1")
        registry.register(Resource.POST, Operation.READ, "always", lambda ctx, row: True)

        def broken(ctx, row):
            raise KeyError("status")

        registry.register(Resource.POST, Operation.READ, "broken", broken)
        policy_engine = PolicyEngine(registry)

        with pytest.raises(PolicyEvaluationError) as exc_info:
            policy_engine.authorize(Resource.POST, Operation.READ, ANON, {})
        assert exc_info.value.rule_name == "broken"

    def test_lookup_failure_propagates(self, policy_engine):
        class FailingLookups:
            def is_admin(self, user_id):
                raise ConnectionError("profile store unreachable")

            def post_status(self, post_id):
                return None

        ctx = AccessContext(IdentityContext.for_user("alice"), FailingLookups())
        with pytest.raises(PolicyEvaluationError):
            policy_engine.authorize(Resource.POST, Operation.DELETE, ctx, {"user_id": "alice"})

    def test_anonymous_admin_check_skips_lookup(self, policy_engine):
        class ExplodingLookups:
            def is_admin(self, user_id):
                raise AssertionError("should not be called")

            def post_status(self, post_id):
                return None

        ctx = AccessContext(IdentityContext.anonymous(), ExplodingLookups())
        assert not policy_engine.authorize(Resource.POST, Operation.DELETE, ctx, {"user_id": None})


class TestSessionLookups:
    """Rules evaluated against the database."""

    def test_admin_flag_and_post_status_from_database(
        self, policy_engine, db_session, admin_profile, alice_profile, comment_on_pending, approved_post
    ):
        def ctx(user_id):
            return AccessContext(IdentityContext.for_user(user_id), SessionLookups(db_session))

        assert policy_engine.authorize(Resource.POST, Operation.DELETE, ctx("root"), {"user_id": "x"})
        assert not policy_engine.authorize(Resource.POST, Operation.DELETE, ctx("alice"), {"user_id": "x"})
        assert not policy_engine.authorize(Resource.POST, Operation.DELETE, ctx("nobody"), {"user_id": "x"})

        assert not policy_engine.authorize(Resource.COMMENT, Operation.READ, ctx("bob"), comment_on_pending)
        assert policy_engine.authorize(
            Resource.COMMENT, Operation.READ, ctx("bob"), {"post_id": approved_post.id}
        )


class TestConcurrentReads:
    """Policy reads never wait on the SQLite write lock."""

    def test_open_read_transactions_do_not_block_each_other(self, policy_engine, tmp_path):
        db = build_engine(f"sqlite:///{tmp_path / 'reads.db'}", connect_args={"timeout": 0.5})
        Base.metadata.create_all(bind=db)
        factory = sessionmaker(bind=db, autoflush=False)
        with factory() as setup:
            setup.add(UserProfile(user_id="root", username="Root", is_admin=True))
            setup.commit()

        row = {"user_id": "alice", "status": "pending"}
        first, second = factory(), factory()
        try:
            for session in (first, second):
                ctx = AccessContext(IdentityContext.for_user("root"), SessionLookups(session))
                assert policy_engine.authorize(Resource.POST, Operation.READ, ctx, row)
            assert first.in_transaction() and second.in_transaction()
        finally:
            first.close()
            second.close()
            db.dispose()
