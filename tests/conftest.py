"""
Shared fixtures: small UIAutomator hierarchies and an engine
"""
import pytest

from ui_query.engine import SelectorEngine
from ui_query.hierarchy_parser import HierarchyParser


# Sample XML with node tags and class attributes
SAMPLE_XML = """
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" package="com.example.app" bounds="[0,0][1080,1920]">
    <node index="0" class="android.widget.LinearLayout" bounds="[0,0][1080,200]">
      <node index="0" class="android.widget.TextView"
            text="Hello World"
            resource-id="com.example.app:id/title"
            content-desc="Title text"
            bounds="[20,50][500,150]" />
      <node index="1" class="android.widget.Button"
            text="Click Me"
            resource-id="com.example.app:id/button"
            clickable="true"
            bounds="[20,200][500,300]" />
    </node>
  </node>
</hierarchy>
"""

# root -> [A(text="x"), B(text="y", children=[C(text="z")])]
ABC_XML = """
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" resource-id="root" bounds="[0,0][1080,1920]">
    <node index="0" class="android.widget.TextView" text="x" resource-id="a" bounds="[0,0][100,100]" />
    <node index="1" class="android.widget.LinearLayout" text="y" resource-id="b" bounds="[0,100][1080,400]">
      <node index="0" class="android.widget.TextView" text="z" resource-id="c" bounds="[0,100][100,200]" />
    </node>
  </node>
</hierarchy>
"""

# a container holding three identical rows
LIST_XML = """
<hierarchy rotation="0">
  <node index="0" class="android.widget.FrameLayout" bounds="[0,0][1080,1920]">
    <node index="0" class="android.widget.TextView" text="item" resource-id="header" bounds="[0,0][1080,100]" />
    <node index="1" class="android.widget.ListView" resource-id="com.example.app:id/list" scrollable="true" bounds="[0,100][1080,1900]">
      <node index="0" class="android.widget.TextView" text="item" resource-id="row0" bounds="[0,100][1080,200]" />
      <node index="1" class="android.widget.TextView" text="item" resource-id="row1" bounds="[0,200][1080,300]" />
      <node index="2" class="android.widget.TextView" text="item" resource-id="row2" bounds="[0,300][1080,400]" />
    </node>
  </node>
</hierarchy>
"""


def parse_roots(xml_content, platform=None):
    result = HierarchyParser.parse_xml(xml_content, platform)
    assert result['success'], result.get('error')
    return result['roots']


def node_by_id(root, resource_id):
    """Depth-first lookup by resource-id without going through the engine"""
    if root.get("resource_id") == resource_id:
        return root
    for child in root.children():
        found = node_by_id(child, resource_id)
        if found is not None:
            return found
    return None


@pytest.fixture
def engine():
    return SelectorEngine()


@pytest.fixture
def build_root():
    """Factory: XML text -> first window root"""
    def _build(xml_content, platform=None):
        return parse_roots(xml_content, platform)[0]
    return _build


@pytest.fixture
def sample_root(build_root):
    return build_root(SAMPLE_XML)


@pytest.fixture
def abc_root(build_root):
    return build_root(ABC_XML)


@pytest.fixture
def list_root(build_root):
    return build_root(LIST_XML)


@pytest.fixture
def find_id():
    return node_by_id
