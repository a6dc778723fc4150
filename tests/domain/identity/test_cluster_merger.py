from __future__ import annotations

from contact_identity.domain.model import LinkRole
from contact_identity.domain.reconciliation import merge_clusters, select_primary
from tests.helpers.contacts import FakeContactRepository, make_contact


def test_merge_clusters_is_noop_for_single_representative() -> None:
    repo = FakeContactRepository(
        [make_contact(1, email="a@x.com"), make_contact(2, phone_number="1", linked_id=1)]
    )
    members = repo.find_cluster_by_root_ids((1,))

    result = merge_clusters(repo, select_primary(members), members)

    assert result.primary_id == 1
    assert result.changed is False
    assert repo.linkage_updates == []


def test_merge_clusters_demotes_younger_representative() -> None:
    repo = FakeContactRepository(
        [make_contact(1, email="a@x.com"), make_contact(2, phone_number="111")]
    )
    members = repo.find_cluster_by_root_ids((1, 2))

    result = merge_clusters(repo, select_primary(members), members)

    assert result.demoted_ids == (2,)
    assert result.repointed_ids == ()
    demoted = repo.by_id(2)
    assert demoted.link_role is LinkRole.MEMBER
    assert demoted.linked_id == 1
    assert repo.by_id(1).is_representative


def test_merge_clusters_repoints_members_of_demoted_representative() -> None:
    repo = FakeContactRepository(
        [
            make_contact(1, email="a@x.com"),
            make_contact(2, phone_number="111"),
            make_contact(3, email="c@x.com", linked_id=2),
            make_contact(4, phone_number="9", linked_id=1),
        ]
    )
    members = repo.find_cluster_by_root_ids((1, 2))

    result = merge_clusters(repo, select_primary(members), members)

    assert result.demoted_ids == (2,)
    assert result.repointed_ids == (3,)
    assert repo.by_id(3).linked_id == 1
    assert repo.by_id(4).linked_id == 1
    assert [update[0] for update in repo.linkage_updates] == [(2,), (3,)]


def test_merge_clusters_collapses_three_clusters_into_oldest() -> None:
    repo = FakeContactRepository(
        [
            make_contact(1, email="a@x.com", minutes=30),
            make_contact(2, phone_number="111", minutes=10),
            make_contact(3, email="c@x.com", minutes=20),
            make_contact(4, phone_number="5", linked_id=3, minutes=40),
        ]
    )
    members = repo.find_cluster_by_root_ids((1, 2, 3))

    result = merge_clusters(repo, select_primary(members), members)

    assert result.primary_id == 2
    assert set(result.demoted_ids) == {1, 3}
    assert result.repointed_ids == (4,)
    live = repo.find_cluster_by_root_ids((2,))
    assert sum(contact.is_representative for contact in live) == 1
    assert all(contact.linked_id == 2 for contact in live if not contact.is_representative)
