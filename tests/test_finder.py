"""
Tests for root providers and the multi-root finder
"""
import pytest

from ui_query.config import Settings
from ui_query.engine import Malformed, NotFound, Unavailable, as_pattern
from ui_query.errors import TreeUnavailableError
from ui_query.finder import UiFinder
from ui_query.root_provider import (
    AndroidRootProvider,
    SnapshotRootProvider,
    create_root_provider,
)
from ui_query.root_provider import android_provider
from ui_query.selector import LinkKind, Selector

from conftest import LIST_XML, SAMPLE_XML

TWO_WINDOWS_XML = """
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" package="com.android.systemui" text="Status bar">
    <node index="0" class="android.widget.TextView" text="OK" resource-id="status_ok" package="com.android.systemui" />
  </node>
  <node index="0" class="android.widget.FrameLayout" package="com.example.app">
    <node index="0" class="android.widget.Button" text="OK" resource-id="app_ok" focused="true" package="com.example.app" />
    <node index="1" class="android.widget.Button" text="Cancel" resource-id="app_cancel" package="com.example.app" />
  </node>
</hierarchy>
"""


@pytest.fixture
def finder():
    return UiFinder(SnapshotRootProvider(TWO_WINDOWS_XML))


class TestSnapshotRootProvider:
    def test_active_root_first(self):
        roots = SnapshotRootProvider(TWO_WINDOWS_XML).get_roots()
        assert [r.package_id() for r in roots] == ["com.example.app", "com.android.systemui"]

    def test_window_hint_by_package_or_title(self):
        provider = SnapshotRootProvider(TWO_WINDOWS_XML)
        assert [r.package_id() for r in provider.get_roots("com.android.systemui")] == ["com.android.systemui"]
        assert [r.package_id() for r in provider.get_roots("Status bar")] == ["com.android.systemui"]
        assert provider.get_roots("com.unknown") == []

    def test_update_and_invalidate(self):
        provider = SnapshotRootProvider()
        with pytest.raises(TreeUnavailableError):
            provider.load_roots()
        assert provider.update(SAMPLE_XML.encode("utf-8"))
        assert len(provider.load_roots()) == 1
        provider.invalidate()
        with pytest.raises(TreeUnavailableError):
            provider.load_roots()

    def test_bad_update_clears_snapshot(self):
        provider = SnapshotRootProvider(SAMPLE_XML)
        assert not provider.update("<hierarchy><node></hierarchy>")
        with pytest.raises(TreeUnavailableError) as exc:
            provider.load_roots()
        assert "XML Syntax Error" in exc.value.last_error

    def test_platform_from_dump(self):
        from ui_query.root_provider import DevicePlatform
        assert SnapshotRootProvider(SAMPLE_XML).platform is DevicePlatform.ANDROID


class TestUiFinder:
    def test_prefers_active_window(self, finder):
        assert finder.find(Selector().text("OK")).get("resource_id") == "app_ok"

    def test_falls_back_to_other_roots(self, finder):
        node = finder.find(Selector().resource_id("status_ok"))
        assert node is not None and node.package_id() == "com.android.systemui"

    def test_window_hint(self, finder):
        assert finder.find(Selector().text("OK"), window="com.android.systemui").get("resource_id") == "status_ok"
        assert finder.find(Selector().text("Cancel"), window="com.android.systemui") is None

    def test_outcomes(self, finder):
        assert isinstance(finder.find_outcome(Selector().text("Nope")), NotFound)
        malformed = Selector().text("OK").with_link(LinkKind.CONTAINER, None)
        assert isinstance(finder.find_outcome(malformed), Malformed)
        assert finder.exists(Selector().text("Cancel"))
        assert not finder.exists(Selector().text("Nope"))

    def test_unavailable_tree(self):
        finder = UiFinder(SnapshotRootProvider())
        outcome = finder.find_outcome(Selector().text("OK"))
        assert isinstance(outcome, Unavailable)
        assert finder.find(Selector().text("OK")) is None
        assert finder.count(Selector().text("OK")) == 0
        assert finder.find_all(Selector().text("OK")) == []

    def test_count_first_root_with_occurrences(self, finder):
        assert finder.count(Selector().class_name("android.widget.Button")) == 2
        assert finder.count(Selector().class_name("android.widget.TextView")) == 1

    def test_find_all(self):
        finder = UiFinder(SnapshotRootProvider(LIST_XML))
        nodes = finder.find_all(Selector().container_selector(Selector().resource_id("com.example.app:id/list"))
                                .text("item"))
        assert [n.get("resource_id") for n in nodes] == ["row0", "row1", "row2"]
        assert len(finder.find_all(Selector().text("item"))) == finder.count(Selector().text("item")) == 4

    def test_find_all_and_count_share_counted_form(self):
        finder = UiFinder(SnapshotRootProvider(LIST_XML))
        in_list = (Selector().container_selector(Selector().class_name("android.widget.ListView"))
                   .text("item").at_instance(2))
        assert as_pattern(in_list) == as_pattern(in_list.at_instance(0))
        nodes = finder.find_all(in_list)
        assert len(nodes) == finder.count(in_list) == 3
        assert [n.get("resource_id") for n in nodes] == ["row0", "row1", "row2"]

    def test_find_all_range_gives_single_node(self):
        finder = UiFinder(SnapshotRootProvider(LIST_XML))
        selector = Selector().text("item").after_selector(Selector().resource_id("row0"))
        assert [n.get("resource_id") for n in finder.find_all(selector)] == ["row1"]


class TestAndroidRootProvider:
    def _provider(self, monkeypatch, dumps, retries=3):
        provider = AndroidRootProvider("emulator-5554", Settings(dump_retries=retries, dump_retry_interval=0.5))
        results = iter(dumps)

        def fake_dump():
            item = next(results)
            if isinstance(item, Exception):
                raise item
            return item

        sleeps = []
        monkeypatch.setattr(provider, "dump_ui_hierarchy", fake_dump)
        monkeypatch.setattr(android_provider.time, "sleep", sleeps.append)
        return provider, sleeps

    def test_retries_until_dump_succeeds(self, monkeypatch):
        provider, sleeps = self._provider(monkeypatch, [None, ConnectionError("device offline"), TWO_WINDOWS_XML])
        roots = provider.load_roots()
        assert roots[0].package_id() == "com.example.app"
        assert sleeps == [0.5, 0.5]

    def test_unparseable_dump_is_retried(self, monkeypatch):
        provider, sleeps = self._provider(monkeypatch, ["<hierarchy><node></hierarchy>", SAMPLE_XML])
        assert len(provider.load_roots()) == 1
        assert sleeps == [0.5]

    def test_gives_up_after_retries(self, monkeypatch):
        provider, sleeps = self._provider(monkeypatch, [None, None], retries=2)
        with pytest.raises(TreeUnavailableError) as exc:
            provider.load_roots()
        assert exc.value.attempts == 2
        assert exc.value.last_error == "all dump methods returned nothing"
        assert sleeps == [0.5]

    def test_finder_reports_unavailable(self, monkeypatch):
        provider, _ = self._provider(monkeypatch, [ConnectionError("adb server not running")], retries=1)
        outcome = UiFinder(provider).find_outcome(Selector().text("OK"))
        assert isinstance(outcome, Unavailable)
        assert "adb server not running" in outcome.reason


class TestCreateRootProvider:
    def test_dump_file(self, tmp_path):
        path = tmp_path / "dump.xml"
        path.write_text(SAMPLE_XML, encoding="utf-8")
        provider = create_root_provider(dump=str(path))
        assert isinstance(provider, SnapshotRootProvider)
        assert len(provider.load_roots()) == 1

    def test_live_android(self):
        provider = create_root_provider(serial="emulator-5554", settings=Settings(dump_retries=5))
        assert isinstance(provider, AndroidRootProvider)
        assert provider.serial == "emulator-5554"
        assert provider.settings.dump_retries == 5

    def test_live_ios_rejected(self):
        with pytest.raises(ValueError):
            create_root_provider(platform="ios")
