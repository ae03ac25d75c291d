from ciwatch.utils.tags import (
    add_tag_to_map,
    convert_tags_to_list,
    get_job_tags,
    merge_tag_maps,
    parse_tag_list,
)


def test_add_tag_to_map():
    tags = add_tag_to_map(None, "tag1", "value")
    tags = add_tag_to_map(tags, "tag1", "other")
    tags = add_tag_to_map(tags, "tag2")
    assert tags == {"tag1": {"value", "other"}, "tag2": {""}}


def test_convert_tags_to_list():
    tags = {"tag1": {"b", "a"}, "tag2": {""}, "tag3": set()}
    assert convert_tags_to_list(tags) == ["tag1:a", "tag1:b", "tag2", "tag3"]


def test_convert_tags_to_list__empty():
    assert convert_tags_to_list(None) == []
    assert convert_tags_to_list({}) == []


def test_merge_tag_maps():
    first = {"env": {"prod"}}
    merged = merge_tag_maps(first, None, {"env": {"staging"}, "team": {"ci"}})
    assert merged == {"env": {"prod", "staging"}, "team": {"ci"}}
    assert first == {"env": {"prod"}}


def test_parse_tag_list():
    assert parse_tag_list(" env:prod, team:ci\ncanary,,url:http://x ") == {
        "env": {"prod"},
        "team": {"ci"},
        "canary": {""},
        "url": {"http://x"},
    }
    assert parse_tag_list(None) == {}


def test_get_job_tags__groups():
    setting = "(.*?)_job_(.*?)_release, owner:$1, release_env:$2, static"
    assert get_job_tags("billing_job_eu_release", setting) == {
        "owner": {"billing"},
        "release_env": {"eu"},
        "static": {""},
    }


def test_get_job_tags__no_match():
    assert get_job_tags("nightly", "deploy, team:ops") == {}
    assert get_job_tags("nightly", None) == {}


def test_get_job_tags__several_entries():
    setting = "deploy, team:ops; deploy|release, critical:true"
    assert get_job_tags("deploy", setting) == {"team": {"ops"}, "critical": {"true"}}


def test_get_job_tags__missing_group(caplog):
    assert get_job_tags("deploy", "deploy, team:$3") == {"team": {""}}


def test_get_job_tags__invalid_pattern(caplog):
    assert get_job_tags("deploy", "deploy[, team:ops") == {}
    assert "Ignoring invalid job tag pattern" in caplog.text
