"""
Tests for SocialService: mutual creation and status transitions
"""
import pytest

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.social import Friendship, FriendshipStatus, effective_status
from app.services.social_service import SocialService


@pytest.fixture
def service(db):
    return SocialService(db)


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob", email="b@x.com")


def edge_status(db, user_id, friend_id):
    edge = db.query(Friendship).filter_by(user_id=user_id, friend_id=friend_id).one()
    return edge.status


class TestCreateMutualFriendships:

    def test_creates_requested_and_pending_edges(self, db, service, alice, bob):
        friendships = service.create_mutual_friendships(alice.id, emails=["b@x.com"])

        assert len(friendships) == 1
        assert friendships[0].user_id == alice.id
        assert friendships[0].friend_id == bob.id
        assert db.query(Friendship).count() == 2
        assert edge_status(db, alice.id, bob.id) == FriendshipStatus.REQUESTED.value
        assert edge_status(db, bob.id, alice.id) == FriendshipStatus.PENDING.value

    def test_second_call_creates_no_duplicates(self, db, service, alice, bob):
        first = service.create_mutual_friendships(alice.id, user_ids=[bob.id])
        second = service.create_mutual_friendships(alice.id, usernames=["bob"])

        assert db.query(Friendship).count() == 2
        assert second[0].id == first[0].id

    def test_existing_edge_status_is_left_untouched(self, db, service, alice, bob):
        service.create_mutual_friendships(alice.id, user_ids=[bob.id])
        service.change_friendship_status(bob.id, alice.id, FriendshipStatus.ACCEPTED)

        friendships = service.create_mutual_friendships(alice.id, user_ids=[bob.id])

        assert friendships[0].status == FriendshipStatus.ACCEPTED.value
        assert edge_status(db, bob.id, alice.id) == FriendshipStatus.ACCEPTED.value

    def test_targets_resolved_by_any_identifier(self, db, service, make_user, alice):
        carol = make_user("carol")
        dave = make_user("dave")
        erin = make_user("erin")

        friendships = service.create_mutual_friendships(
            alice.id,
            user_ids=[carol.id],
            emails=["  DAVE@example.com "],
            usernames=["erin"]
        )

        assert sorted(f.friend_id for f in friendships) == sorted([carol.id, dave.id, erin.id])
        assert db.query(Friendship).count() == 6

    def test_unmatched_identifiers_are_skipped(self, db, service, alice, bob):
        friendships = service.create_mutual_friendships(
            alice.id,
            user_ids=[999],
            emails=["b@x.com", "nobody@example.com"]
        )

        assert [f.friend_id for f in friendships] == [bob.id]

    def test_nothing_resolved_is_not_found(self, db, service, alice):
        with pytest.raises(NotFoundError):
            service.create_mutual_friendships(alice.id, usernames=["ghost"])
        assert db.query(Friendship).count() == 0

    def test_no_identifiers_is_bad_request(self, service, alice):
        with pytest.raises(BadRequestError):
            service.create_mutual_friendships(alice.id)

    def test_self_among_targets_is_skipped(self, db, service, alice, bob):
        friendships = service.create_mutual_friendships(alice.id, user_ids=[alice.id, bob.id])

        assert [f.friend_id for f in friendships] == [bob.id]
        assert db.query(Friendship).count() == 2
        assert db.query(Friendship).filter_by(user_id=alice.id, friend_id=alice.id).count() == 0

    def test_self_as_only_target_is_rejected(self, db, service, alice):
        with pytest.raises(BadRequestError):
            service.create_mutual_friendships(alice.id, usernames=["alice"])
        assert db.query(Friendship).count() == 0

    def test_failed_commit_rolls_back_whole_batch(self, db, service, monkeypatch, make_user, alice, bob):
        carol = make_user("carol")
        service.create_mutual_friendships(alice.id, user_ids=[carol.id])
        # Another request created alice -> carol after this one looked
        monkeypatch.setattr(service, "get_pair", lambda user_id, friend_id: (None, None))

        with pytest.raises(ConflictError):
            service.create_mutual_friendships(alice.id, user_ids=[bob.id, carol.id])

        assert db.query(Friendship).count() == 2
        assert db.query(Friendship).filter_by(user_id=alice.id, friend_id=bob.id).count() == 0
        assert db.query(Friendship).filter_by(user_id=bob.id, friend_id=alice.id).count() == 0

    def test_unknown_initiator_is_not_found(self, service, bob):
        with pytest.raises(NotFoundError):
            service.create_mutual_friendships(999, user_ids=[bob.id])

    def test_keeps_existing_reciprocal_edge(self, db, service, alice, bob):
        db.add(Friendship(user_id=bob.id, friend_id=alice.id, status=FriendshipStatus.BANNED.value))
        db.commit()

        service.create_mutual_friendships(alice.id, user_ids=[bob.id])

        assert db.query(Friendship).count() == 2
        assert edge_status(db, alice.id, bob.id) == FriendshipStatus.REQUESTED.value
        assert edge_status(db, bob.id, alice.id) == FriendshipStatus.BANNED.value


class TestChangeFriendshipStatus:

    @pytest.fixture(autouse=True)
    def pair(self, service, alice, bob):
        service.create_mutual_friendships(alice.id, user_ids=[bob.id])

    def test_accept_confirms_both_sides(self, db, service, alice, bob):
        edge = service.change_friendship_status(bob.id, alice.id, FriendshipStatus.ACCEPTED)

        assert edge.user_id == bob.id
        assert edge.status == FriendshipStatus.ACCEPTED.value
        assert edge_status(db, alice.id, bob.id) == FriendshipStatus.ACCEPTED.value
        assert service.are_friends(alice.id, bob.id)
        assert service.are_friends(bob.id, alice.id)

    def test_requester_cannot_accept_own_request(self, db, service, alice, bob):
        with pytest.raises(ConflictError):
            service.change_friendship_status(alice.id, bob.id, FriendshipStatus.ACCEPTED)
        assert edge_status(db, alice.id, bob.id) == FriendshipStatus.REQUESTED.value

    @pytest.mark.parametrize("new_status", [
        FriendshipStatus.DECLINED,
        FriendshipStatus.REJECTED,
        FriendshipStatus.BANNED,
    ])
    def test_blocking_status_leaves_reciprocal_alone(self, db, service, alice, bob, new_status):
        edge = service.change_friendship_status(bob.id, alice.id, new_status)

        assert edge.status == new_status.value
        assert edge_status(db, alice.id, bob.id) == FriendshipStatus.REQUESTED.value
        assert not service.are_friends(alice.id, bob.id)

    def test_ban_after_accept_keeps_other_side_accepted(self, db, service, alice, bob):
        service.change_friendship_status(bob.id, alice.id, FriendshipStatus.ACCEPTED)
        service.change_friendship_status(alice.id, bob.id, FriendshipStatus.BANNED)

        assert edge_status(db, bob.id, alice.id) == FriendshipStatus.ACCEPTED.value
        assert not service.are_friends(bob.id, alice.id)

    def test_accepts_plain_string_status(self, service, alice, bob):
        edge = service.change_friendship_status(bob.id, alice.id, "accepted")
        assert edge.status == "accepted"

    @pytest.mark.parametrize("new_status", ["requested", "pending", "bogus"])
    def test_non_terminal_status_is_bad_request(self, service, alice, bob, new_status):
        with pytest.raises(BadRequestError):
            service.change_friendship_status(bob.id, alice.id, new_status)

    def test_unknown_user_is_not_found(self, service, alice):
        with pytest.raises(NotFoundError):
            service.change_friendship_status(alice.id, 999, FriendshipStatus.DECLINED)

    def test_missing_edge_is_conflict(self, service, make_user, alice):
        carol = make_user("carol")
        with pytest.raises(ConflictError):
            service.change_friendship_status(alice.id, carol.id, FriendshipStatus.ACCEPTED)


class TestReject:

    def test_reject_keeps_row(self, db, service, alice, bob):
        created = service.create_mutual_friendships(alice.id, user_ids=[bob.id])[0]

        service.reject_friendship(alice.id, bob.id)

        fetched = service.get_friendship(created.id)
        assert fetched.status == FriendshipStatus.REJECTED.value
        assert db.query(Friendship).count() == 2

    def test_reject_missing_pair_is_not_found(self, service, alice, bob):
        with pytest.raises(NotFoundError):
            service.reject_friendship(alice.id, bob.id)

    def test_bulk_reject_updates_matched_rows(self, db, service, make_user, alice, bob):
        carol = make_user("carol")
        service.create_mutual_friendships(alice.id, user_ids=[bob.id, carol.id])

        rejected = service.reject_friendships(alice.id, [bob.id, carol.id, 999])

        assert sorted(f.friend_id for f in rejected) == sorted([bob.id, carol.id])
        assert all(f.status == FriendshipStatus.REJECTED.value for f in rejected)
        assert edge_status(db, bob.id, alice.id) == FriendshipStatus.PENDING.value

    def test_bulk_reject_requires_ids(self, service, alice):
        with pytest.raises(BadRequestError):
            service.reject_friendships(alice.id, [])


class TestEffectiveStatus:

    def make(self, status):
        return Friendship(user_id=1, friend_id=2, status=status.value)

    def test_blocking_side_wins(self):
        accepted = self.make(FriendshipStatus.ACCEPTED)
        banned = self.make(FriendshipStatus.BANNED)
        assert effective_status(accepted, banned) == FriendshipStatus.BANNED
        assert effective_status(banned, accepted) == FriendshipStatus.BANNED

    def test_both_accepted(self):
        assert effective_status(
            self.make(FriendshipStatus.ACCEPTED),
            self.make(FriendshipStatus.ACCEPTED)
        ) == FriendshipStatus.ACCEPTED

    def test_one_sided_accept_is_pending(self):
        assert effective_status(
            self.make(FriendshipStatus.ACCEPTED),
            self.make(FriendshipStatus.REQUESTED)
        ) == FriendshipStatus.PENDING

    def test_requested_pairs_with_pending(self):
        assert effective_status(
            self.make(FriendshipStatus.REQUESTED),
            self.make(FriendshipStatus.PENDING)
        ) == FriendshipStatus.REQUESTED
