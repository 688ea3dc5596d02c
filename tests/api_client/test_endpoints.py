"""Tests for endpoint descriptor construction."""

from __future__ import annotations

import dataclasses

import pytest

from eve_lib.api_client.dispatcher import build_url
from eve_lib.api_client.endpoints import build_request, pair_params
from eve_lib.api_client.serializers import JsonSerializer
from eve_lib.eve_online.models import CharacterInfo


class TestPairParams:
    """Tests for pair_params."""

    def test_groups_alternating_names_and_values(self) -> None:
        assert pair_params("characterID", 123, "rowCount", 50) == (
            ("characterID", 123),
            ("rowCount", 50),
        )

    def test_no_pairs(self) -> None:
        assert pair_params() == ()

    def test_dangling_name_raises(self) -> None:
        with pytest.raises(ValueError, match="rowCount"):
            pair_params("characterID", 123, "rowCount")

    def test_non_string_name_raises(self) -> None:
        with pytest.raises(ValueError):
            pair_params(123, "characterID")


class TestBuildRequest:
    """Tests for build_request."""

    def test_joins_root_relative_path(self) -> None:
        descriptor = build_request(
            "https://api.eveonline.com",
            "/eve/CharacterInfo.xml.aspx",
            CharacterInfo,
            "characterID",
            123,
        )

        assert descriptor.url == "https://api.eveonline.com/eve/CharacterInfo.xml.aspx"
        assert descriptor.shape is CharacterInfo
        assert descriptor.params == (("characterID", 123),)
        assert descriptor.serializer is None

    def test_joins_relative_path_under_base_path(self) -> None:
        descriptor = build_request(
            "http://public-crest.eveonline.com/",
            "market/10000002/types/34/history/",
            dict,
            serializer=JsonSerializer(),
        )

        assert descriptor.url == (
            "http://public-crest.eveonline.com/market/10000002/types/34/history/"
        )
        assert isinstance(descriptor.serializer, JsonSerializer)

    def test_order_survives_into_final_url(self) -> None:
        descriptor = build_request(
            "https://api.eveonline.com",
            "/char/WalletJournal.xml.aspx",
            dict,
            "characterID",
            123,
            "rowCount",
            50,
        )

        assert build_url(descriptor.url, descriptor.params).endswith(
            "?characterID=123&rowCount=50"
        )

    def test_descriptor_is_immutable(self) -> None:
        descriptor = build_request("https://host", "/path", dict, "a", 1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.url = "https://other"  # type: ignore[misc]

    def test_later_changes_to_caller_values_are_not_sent(self) -> None:
        item_ids = [1, 2]
        flags = {"a"}
        descriptor = build_request("https://h", "/p", dict, "IDs", item_ids, "flags", flags)

        item_ids.append(3)
        flags.add("b")

        assert build_url(descriptor.url, descriptor.params) == "https://h/p?IDs=1%2C2&flags=a"
        assert descriptor.params == (("IDs", (1, 2)), ("flags", frozenset({"a"})))
