"""Tests for cookies.py — Set-Cookie parsing and the jar."""

import pytest
from conftest import encode_token

from tariff_harvester.cookies import CookieJar, parse_set_cookie


class TestParseSetCookie:
    def test_name_and_value(self):
        assert parse_set_cookie("name=value") == ("name", "value")

    @pytest.mark.parametrize(
        "header",
        [
            "name=value; Path=/; HttpOnly",
            "name=value; Secure",
            " name = value ;Domain=.shop.test; SameSite=Lax",
        ],
    )
    def test_attributes_discarded(self, header):
        assert parse_set_cookie(header) == ("name", "value")

    def test_value_containing_equals(self):
        assert parse_set_cookie("token=abc==; Path=/") == ("token", "abc==")

    def test_empty_value_skipped(self):
        assert parse_set_cookie("name=; Path=/") is None

    def test_missing_equals_skipped(self):
        assert parse_set_cookie("HttpOnly") is None

    def test_empty_name_skipped(self):
        assert parse_set_cookie("=value") is None


class TestCookieJar:
    def test_last_write_wins(self):
        jar = CookieJar()
        jar.merge_set_cookie_headers(["a=1", "a=2; Path=/"])
        assert jar.cookies == {"a": "2"}

    def test_id_token_decoded(self):
        jar = CookieJar()
        jar.set("eShop-auth-prod1_p_id_token", encode_token({"platformSessionId": "s1"}))
        assert jar.platform_session_id == "s1"

    def test_bad_token_keeps_earlier_id(self):
        jar = CookieJar()
        jar.set("eShop-auth-prod1_p_id_token", encode_token({"platformSessionId": "s1"}))
        jar.set("eShop-auth-prod1_p_id_token", "garbage")
        assert jar.platform_session_id == "s1"
        assert jar.cookies["eShop-auth-prod1_p_id_token"] == "garbage"

    def test_header_excludes_session_id(self):
        jar = CookieJar(cookies={"a": "1", "b": "2"}, platform_session_id="s1")
        assert jar.header() == "a=1; b=2"

    def test_as_dict_includes_session_id(self):
        jar = CookieJar(cookies={"a": "1"}, platform_session_id="s1")
        assert jar.as_dict() == {"a": "1", "platformSessionId": "s1"}

    def test_as_dict_without_session_id(self):
        assert CookieJar(cookies={"a": "1"}).as_dict() == {"a": "1"}

    def test_from_dict_splits_session_id(self):
        jar = CookieJar.from_dict({"platformSessionId": "s1", "other": "v"})
        assert jar.platform_session_id == "s1"
        assert jar.cookies == {"other": "v"}
        assert jar.header() == "other=v"

    def test_from_dict_stringifies_values(self):
        jar = CookieJar.from_dict({"platformSessionId": 7, "n": 1, "flag": True})
        assert jar.platform_session_id == "7"
        assert jar.header() == "n=1; flag=True"

    def test_merge_counts_added(self):
        jar = CookieJar()
        assert jar.merge_set_cookie_headers(["a=1", "bad", "b=2"]) == 2
        assert "a" in jar and "b" in jar
        assert len(jar) == 2
