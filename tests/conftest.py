"""Shared pytest fixtures for the codecanon test suite."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from codecanon.core.engine import CanonEngine
from codecanon.core.registry import RuleRegistry
from tests.helpers import FixTodoRule

VUE_COMPONENT = textwrap.dedent("""\
    <template>
      <ul>
        <li v-for="item in items" :key="item.id">{{ item.name }}</li>
      </ul>
    </template>

    <script setup lang="ts">
    const items = await fetch('/api/items')
    </script>

    <style>
    .title { color: red; }
    </style>
""")

NESTED_TEMPLATE = textwrap.dedent("""\
    <template>
      <div>
        <template v-if="open">
          <span>inner</span>
        </template>
      </div>
    </template>
    <script>
    export default {}
    </script>
""")

DEEP_TEMPLATE = textwrap.dedent("""\
    <template>
      <section>
        <template v-if="open">
          <template v-for="row in rows" :key="row.id">
            <span>{{ row.name }}</span>
          </template>
        </template>
        <footer>done</footer>
      </section>
    </template>
    <script>
    export default {}
    </script>
""")

PYTHON_MODULE = textwrap.dedent("""\
    import logging

    logger = logging.getLogger(__name__)


    def load(raw):
        try:
            return int(raw)
        except:
            return 0
""")

CONFIG_YAML = textwrap.dedent("""\
    # conventions for the sample project
    groups:
      backend:
        path: src
        extensions: [py]
        rules: [
          no-bare-except,
          long-function,
        ]
      frontend:
        path: web
        extensions: [vue]
        thresholds: {max_vue_lines: 400}
        rules: [
          no-fetch-axios,
          template-v-for,
          {long-vue-files: {max_vue_lines: 5}},
        ]
""")


@pytest.fixture(autouse=True)
def _reset_remediation_log() -> None:
    FixTodoRule.remediated.clear()


@pytest.fixture
def text_project(tmp_path: Path) -> Path:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "clean.txt").write_text("all good\n")
    (docs / "todo.txt").write_text("line 1\nline 2\nline 3\nline 4\nline 5\nline 6\nTODO: finish\nline 8\n")
    return tmp_path


@pytest.fixture
def text_registry() -> RuleRegistry:
    registry = RuleRegistry()
    registry.set_group_config("docs", {"path": "docs", "extensions": ["txt"]})
    return registry


@pytest.fixture
def text_engine(text_project: Path, text_registry: RuleRegistry) -> CanonEngine:
    return CanonEngine(text_registry, text_project)


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "loader.py").write_text(PYTHON_MODULE)
    (tmp_path / "web").mkdir()
    (tmp_path / "web" / "List.vue").write_text(VUE_COMPONENT)
    (tmp_path / "codecanon.yaml").write_text(CONFIG_YAML)
    return tmp_path
