"""
Tests for pattern selection and counting
"""
from ui_query.engine import Malformed
from ui_query.selector import LinkKind, Selector


def _rows_in_list():
    container = Selector().resource_id("com.example.app:id/list")
    return Selector().container_selector(container).pattern_selector(Selector().text("item"))


class TestPatternInstances:
    def test_count_within_container(self, engine, list_root):
        """Scenario: three rows match the body inside the container"""
        assert engine.count(_rows_in_list(), list_root) == 3

    def test_instance_selects_occurrence(self, engine, list_root, find_id):
        assert engine.search(_rows_in_list().at_instance(0), list_root) is find_id(list_root, "row0")
        assert engine.search(_rows_in_list().at_instance(2), list_root) is find_id(list_root, "row2")

    def test_instance_past_count_is_not_found(self, engine, list_root):
        assert engine.search(_rows_in_list().at_instance(3), list_root) is None

    def test_count_agrees_with_instances(self, engine, list_root):
        selector = Selector().pattern_selector(Selector().text("item"))
        total = engine.count(selector, list_root)
        assert total == 4
        assert engine.search(selector.at_instance(total - 1), list_root) is not None
        assert engine.search(selector.at_instance(total), list_root) is None

    def test_pattern_with_child_chain(self, engine, list_root, find_id):
        body = Selector().class_name("android.widget.ListView").child_selector(Selector().text("item"))
        selector = Selector().pattern_selector(body, instance=0)
        assert engine.search(selector, list_root) is find_id(list_root, "row0")

    def test_plain_selector_is_counted_as_its_own_pattern(self, engine, list_root):
        assert engine.count(Selector().text("item"), list_root) == 4
        assert engine.count(Selector().text("item").at_instance(3), list_root) == 4
        assert engine.count(Selector().text("nothing"), list_root) == 0

    def test_plain_selector_with_container_is_counted_inside_it(self, engine, list_root):
        selector = Selector().container_selector(Selector().class_name("android.widget.ListView")).text("item")
        assert engine.count(selector, list_root) == 3

    def test_refinement_after_pattern(self, engine, build_root):
        root = build_root("""
        <hierarchy rotation="0">
          <node index="0" class="android.widget.ListView" resource-id="list">
            <node index="0" class="android.widget.LinearLayout" resource-id="card0">
              <node index="0" class="android.widget.TextView" text="Alice" resource-id="name0" />
            </node>
            <node index="1" class="android.widget.LinearLayout" resource-id="card1">
              <node index="0" class="android.widget.TextView" text="Bob" resource-id="name1" />
            </node>
          </node>
        </hierarchy>
        """)
        cards = Selector().resource_id_matches("card\\d")
        selector = (Selector().pattern_selector(cards, instance=1)
                    .child_selector(Selector().class_name("android.widget.TextView")))
        node = engine.search(selector, root)
        assert node is not None and node.get("text") == "Bob"


class TestMalformedPatterns:
    def test_pattern_without_body_is_malformed(self, engine, list_root):
        selector = Selector().with_link(LinkKind.PATTERN, None)
        outcome = engine.resolve(selector, list_root)
        assert isinstance(outcome, Malformed)
        assert engine.search(selector, list_root) is None
        assert engine.count(selector, list_root) == 0

    def test_child_without_body_is_malformed(self, engine, list_root):
        selector = Selector().text("item").child_selector(None)
        assert isinstance(engine.resolve(selector, list_root), Malformed)

    def test_nested_missing_body_is_malformed(self, engine, list_root):
        body = Selector().class_name("android.widget.ListView").child_selector(None)
        assert isinstance(engine.resolve(Selector().pattern_selector(body), list_root), Malformed)

    def test_pattern_with_range_is_malformed(self, engine, list_root):
        selector = Selector().pattern_selector(Selector().text("item")).after_selector(Selector().text("x"))
        outcome = engine.resolve(selector, list_root)
        assert isinstance(outcome, Malformed)
        assert "pattern" in outcome.reason


class TestPatternTraversal:
    GAPPY_LIST_XML = """
    <hierarchy rotation="0">
      <node index="0" class="android.widget.ListView" resource-id="list">
        <node index="0" class="android.widget.TextView" text="item" resource-id="row0" />
        <node index="1" class="android.widget.TextView" text="item" resource-id="row1" visible-to-user="false" />
        <!-- row lost while dumping -->
        <node index="3" class="android.widget.LinearLayout" resource-id="hidden_group" visible-to-user="false">
          <node index="0" class="android.widget.TextView" text="item" resource-id="nested_hidden" />
        </node>
        <node index="4" class="android.widget.TextView" text="item" resource-id="row4" />
      </node>
    </hierarchy>
    """

    def test_count_skips_null_and_invisible(self, engine, build_root):
        root = build_root(self.GAPPY_LIST_XML)
        assert root.child_at(2) is None
        assert engine.count(Selector().pattern_selector(Selector().text("item")), root) == 2

    def test_instance_skips_null_and_invisible(self, engine, build_root, find_id):
        root = build_root(self.GAPPY_LIST_XML)
        selector = Selector().pattern_selector(Selector().text("item"), instance=1)
        assert engine.search(selector, root) is find_id(root, "row4")
        assert engine.search(selector.at_instance(2), root) is None
