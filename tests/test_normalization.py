"""Tests for raw device normalization."""

import logging

import pytest

from installs_reporter.errors import MalformedInputError
from installs_reporter.models.records import ConfigType, StatusCategory
from installs_reporter.models.settings import ReporterSettings
from installs_reporter.normalization import normalize_device, normalize_fleet, parse_inventory
from installs_reporter.normalization.inventory import parse_powershell_hashtable

from fixtures.devices import cimian_device, cimian_item, munki_device, munki_item, sample_fleet


class TestParseInventory:
    def test_mapping_passthrough(self):
        assert parse_inventory({"usage": "Staff"}) == {"usage": "Staff"}

    def test_powershell_hashtable(self):
        parsed = parse_inventory("@{usage=Staff; catalog=Production; location=Room 5; assetTag=$null}")
        assert parsed == {"usage": "Staff", "catalog": "Production", "location": "Room 5", "assetTag": None}

    def test_json_string(self):
        assert parse_inventory('{"usage": "Lab"}') == {"usage": "Lab"}

    @pytest.mark.parametrize("raw", [None, "", "garbage", 12, ["usage"], "[1, 2]"])
    def test_unparseable_is_empty(self, raw):
        assert parse_inventory(raw) == {}

    def test_hashtable_rejects_other_strings(self):
        with pytest.raises(ValueError):
            parse_powershell_hashtable("usage=Staff")


class TestNormalizeDevice:
    def test_cimian_records_and_summary(self):
        device = cimian_device(
            "W100",
            [cimian_item("Chrome", "Installed", "120.0"), cimian_item("Git", "Install Error", "2.44")],
            device_name="PC-100",
            asset_tag="T-1",
        )
        result = normalize_device(device)
        assert [r.name for r in result.records] == ["Chrome", "Git"]
        chrome = result.records[0]
        assert chrome.source == "cimian"
        assert chrome.status is StatusCategory.INSTALLED
        assert chrome.version == "120.0"
        assert chrome.device_name == "PC-100"
        assert chrome.asset_tag == "T-1"
        assert chrome.platform == "Windows"
        assert chrome.manifest == "Assigned/Staff"
        summary = result.summary
        assert summary.config_type is ConfigType.CIMIAN
        assert summary.client_identifier == "Assigned/Staff"
        assert summary.software_repo_url == "https://cimian.example.org/deployment"
        assert summary.version == "2025.06.01.1200"
        assert summary.total_packages_managed == 2
        assert summary.installed_count == 1
        assert summary.error_count == 1

    def test_munki_shape(self):
        device = munki_device("M100", [munki_item("Slack", "will-be-installed", "4.36")], manifest="lab")
        result = normalize_device(device)
        record = result.records[0]
        assert record.source == "munki"
        assert record.status is StatusCategory.PENDING
        assert record.platform == "Macintosh"
        assert result.summary.config_type is ConfigType.MUNKI
        assert result.summary.client_identifier == "lab"
        assert result.summary.pending_count == 1

    def test_version_prefers_latest_then_installed(self):
        device = cimian_device("W101", [{"itemName": "Tool", "currentStatus": "Installed", "installedVersion": "3.1"}])
        assert normalize_device(device).records[0].version == "3.1"

    def test_cimian_preferred_when_both_agents_report(self):
        device = cimian_device("B001", [cimian_item("Chrome", "Installed")])
        device["modules"]["installs"]["munki"] = {
            "items": [munki_item("Slack", "installed")],
            "manifestName": "mac_manifest",
            "softwareRepoURL": "https://munki.example.org/repo",
            "version": "6.5.1",
        }
        result = normalize_device(device)
        assert {r.source for r in result.records} == {"cimian", "munki"}
        assert result.summary.config_type is ConfigType.CIMIAN
        assert result.summary.client_identifier == "Assigned/Staff"
        assert result.summary.total_packages_managed == 2

    def test_munki_fills_fields_cimian_lacks(self):
        device = cimian_device("B002", [cimian_item("Chrome", "Installed")], client_identifier="")
        device["modules"]["installs"]["munki"] = {"items": [], "manifestName": "mac_manifest"}
        assert normalize_device(device).summary.client_identifier == "mac_manifest"

    def test_missing_inventory_uses_unknown_sentinel(self):
        device = {"serialNumber": "S1", "modules": {"installs": {"cimian": {"items": [cimian_item("A", "Installed")]}}}}
        result = normalize_device(device)
        summary = result.summary
        assert (summary.usage, summary.catalog, summary.room, summary.fleet) == ("Unknown",) * 4
        assert summary.client_identifier == "Unknown"
        assert summary.device_id == "S1"
        assert summary.device_name == "S1"
        assert summary.asset_tag is None
        # platform inferred from the reporting agent
        assert summary.platform == "Windows"

    def test_inventory_fallbacks(self):
        device = cimian_device("W102", [], fleet="")
        device["modules"]["inventory"] = {"department": "Finance", "room": "2.14"}
        summary = normalize_device(device).summary
        assert summary.fleet == "Finance"
        assert summary.room == "2.14"

    def test_no_agent_data_gives_none_summary(self):
        device = {"serialNumber": "N1", "modules": {"inventory": {"usage": "Kiosk"}}}
        result = normalize_device(device)
        assert result.records == ()
        assert result.summary.config_type is ConfigType.NONE
        assert result.summary.total_packages_managed == 0
        assert result.summary.platform == "Unknown"

    def test_internal_items_dropped(self):
        device = cimian_device(
            "W103",
            [
                cimian_item("managed_apps", "Installed"),
                cimian_item("Profile", "Installed", group="managed_profiles"),
                cimian_item("Real", "Installed"),
            ],
        )
        result = normalize_device(device)
        assert [r.name for r in result.records] == ["Real"]
        assert result.summary.total_packages_managed == 1

    def test_internal_items_configurable(self):
        device = cimian_device("W104", [cimian_item("managed_apps", "Installed"), cimian_item("Drop", "Installed")])
        result = normalize_device(device, ReporterSettings(internal_items=["Drop"]))
        assert [r.name for r in result.records] == ["managed_apps"]

    def test_bad_items_skipped_with_warning(self, caplog):
        device = cimian_device("W105", ["junk", {"currentStatus": "Installed"}, cimian_item("Ok", "Installed")])
        with caplog.at_level(logging.WARNING):
            result = normalize_device(device)
        assert [r.name for r in result.records] == ["Ok"]
        assert "without a name" in caplog.text

    def test_items_not_a_list(self):
        device = cimian_device("W106", [])
        device["modules"]["installs"]["cimian"]["items"] = "oops"
        assert normalize_device(device).records == ()

    @pytest.mark.parametrize("raw", ["text", None, 5, {"modules": {}}])
    def test_unidentifiable_device_raises(self, raw):
        with pytest.raises(MalformedInputError):
            normalize_device(raw)

    def test_sum_invariant_on_many_statuses(self):
        statuses = ["Installed", "failed", "warning", "will-be-removed", "pending", "", "mystery", "Error warning"]
        device = cimian_device("W107", [cimian_item(f"i{n}", s) for n, s in enumerate(statuses)])
        summary = normalize_device(device).summary
        assert summary.category_sum == summary.total_packages_managed == len(statuses)


class TestNormalizeFleet:
    def test_sample_fleet(self):
        dataset = normalize_fleet(sample_fleet())
        assert [s.serial_number for s in dataset.summaries] == ["W001", "W002", "M001", "N001"]
        assert [s.serial_number for s in dataset.config_rows] == ["W001", "W002", "M001"]
        assert dataset.skipped_devices == 1
        assert len(dataset.records) == 7

    def test_sum_invariant_across_fleet(self):
        for summary in normalize_fleet(sample_fleet()).summaries:
            assert summary.category_sum == summary.total_packages_managed

    def test_archived_kept_when_configured(self):
        dataset = normalize_fleet(sample_fleet(), ReporterSettings(skip_archived=False))
        assert "X001" in [s.serial_number for s in dataset.summaries]

    def test_powershell_inventory_device(self):
        n001 = next(s for s in normalize_fleet(sample_fleet()).summaries if s.serial_number == "N001")
        assert n001.usage == "Kiosk"
        assert n001.room == "Lobby"
        assert n001.fleet == "Front Desk"

    @pytest.mark.parametrize("devices", [None, [], "nope", {"devices": []}])
    def test_empty_or_invalid_input_gives_empty_dataset(self, devices):
        dataset = normalize_fleet(devices)
        assert dataset.records == ()
        assert dataset.summaries == ()

    def test_records_for_items(self):
        dataset = normalize_fleet(sample_fleet())
        chrome = dataset.records_for_items(["Chrome"])
        assert {r.serial_number for r in chrome} == {"W001", "W002", "M001"}
