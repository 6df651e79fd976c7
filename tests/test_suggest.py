"""
Tests for selector suggestion
"""
from ui_query.suggest import suggest_selectors

TWO_DIALOGS_XML = """
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" resource-id="android:id/content">
    <node index="0" class="android.widget.LinearLayout" resource-id="com.app:id/dialog_a">
      <node index="0" class="android.widget.Button" text="OK" />
    </node>
    <node index="1" class="android.widget.LinearLayout" resource-id="com.app:id/dialog_b">
      <node index="0" class="android.widget.Button" text="OK" />
    </node>
  </node>
</hierarchy>
"""


class TestSuggestSelectors:
    def test_resource_id_comes_first(self, engine, sample_root, find_id):
        node = find_id(sample_root, "com.example.app:id/title")
        suggestions = suggest_selectors(node, sample_root, engine)
        assert str(suggestions[0]) == 'new UiSelector().resourceId("com.example.app:id/title")'
        assert 'new UiSelector().text("Hello World")' in [str(s) for s in suggestions]
        assert all(engine.search(s, sample_root) is node for s in suggestions)

    def test_limit(self, engine, sample_root, find_id):
        node = find_id(sample_root, "com.example.app:id/button")
        assert len(suggest_selectors(node, sample_root, engine, limit=2)) == 2

    def test_ambiguous_attributes_are_anchored(self, engine, build_root, find_id):
        root = build_root(TWO_DIALOGS_XML)
        target = find_id(root, "com.app:id/dialog_b").children()[0]
        suggestions = [str(s) for s in suggest_selectors(target, root, engine)]

        assert 'new UiSelector().text("OK")' not in suggestions
        assert suggestions[0] == (
            'new UiSelector().resourceId("com.app:id/dialog_b")'
            '.childSelector(new UiSelector().text("OK"))'
        )
        assert 'new UiSelector().className("android.widget.Button").instance(1)' in suggestions

    def test_every_suggestion_resolves_to_node(self, engine, list_root, find_id):
        target = find_id(list_root, "row1")
        suggestions = suggest_selectors(target, list_root, engine)
        assert suggestions
        for selector in suggestions:
            assert engine.search(selector, list_root) is target
