import pytest

from conifer_local.domain.errors import BadRequestError
from conifer_local.services.filters import match_metadata

DRAMA = {"genre": "drama", "year": 2020, "tags": ["classic", "award"]}


def test_empty_filter_matches_everything():
    assert match_metadata(DRAMA, None)
    assert match_metadata(None, {})


def test_bare_value_means_eq_and_lists_match_membership():
    assert match_metadata(DRAMA, {"genre": "drama"})
    assert not match_metadata(DRAMA, {"genre": "comedy"})
    assert match_metadata(DRAMA, {"tags": "award"})


def test_comparisons():
    assert match_metadata(DRAMA, {"year": {"$gte": 2020, "$lt": 2021}})
    assert not match_metadata(DRAMA, {"year": {"$gt": 2020}})
    # non-numeric values never satisfy a range
    assert not match_metadata(DRAMA, {"genre": {"$gt": 1}})


def test_in_and_nin():
    assert match_metadata(DRAMA, {"genre": {"$in": ["drama", "comedy"]}})
    assert match_metadata(DRAMA, {"tags": {"$in": ["award"]}})
    assert not match_metadata(DRAMA, {"genre": {"$nin": ["drama"]}})
    with pytest.raises(BadRequestError):
        match_metadata(DRAMA, {"genre": {"$in": "drama"}})


def test_negations_match_missing_fields():
    assert match_metadata({}, {"genre": {"$ne": "drama"}})
    assert match_metadata({}, {"genre": {"$nin": ["drama"]}})
    assert not match_metadata({}, {"genre": {"$eq": "drama"}})


def test_exists():
    assert match_metadata(DRAMA, {"year": {"$exists": True}})
    assert match_metadata(DRAMA, {"rating": {"$exists": False}})
    assert not match_metadata(DRAMA, {"rating": {"$exists": True}})


def test_and_or():
    spec = {"$or": [{"genre": "comedy"}, {"$and": [{"year": {"$gte": 2019}}, {"tags": "classic"}]}]}
    assert match_metadata(DRAMA, spec)
    assert not match_metadata(DRAMA, {"$and": [{"genre": "drama"}, {"year": 1999}]})


def test_unknown_operator_is_rejected():
    with pytest.raises(BadRequestError):
        match_metadata(DRAMA, {"genre": {"$regex": "dr.*"}})
    with pytest.raises(BadRequestError):
        match_metadata(DRAMA, {"$not": {"genre": "drama"}})
