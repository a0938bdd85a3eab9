"""CacheManagerのユニットテスト。"""

from pathlib import Path

from rulestudio.models.rule import Rule, RuleParameter
from rulestudio.storage.cache import CacheManager, load_json_list


class TestRulesCache:
    def test_round_trip(self, cache: CacheManager) -> None:
        rules = [
            Rule(id="force_cast", name="Force Cast", category="idiomatic", severity="error"),
            Rule(
                id="line_length",
                name="Line Length",
                category="metrics",
                parameters=[RuleParameter(name="warning", type="integer", default_value=120)],
            ),
        ]
        cache.save_cached_rules(rules)
        assert cache.load_cached_rules() == rules

    def test_missing_cache(self, cache: CacheManager) -> None:
        assert cache.load_cached_rules() == []

    def test_corrupt_cache(self, cache: CacheManager) -> None:
        cache.cache_dir.mkdir(parents=True)
        (cache.cache_dir / CacheManager.RULES_FILE).write_text("{not json", encoding="utf-8")
        assert cache.load_cached_rules() == []


class TestVersionAndDocs:
    def test_version(self, cache: CacheManager) -> None:
        assert cache.get_cached_swiftlint_version() is None
        cache.save_swiftlint_version("0.54.0")
        assert cache.get_cached_swiftlint_version() == "0.54.0"

    def test_docs_directory_must_exist(self, cache: CacheManager, tmp_path: Path) -> None:
        docs = tmp_path / "docs"
        cache.save_docs_directory(docs)
        assert cache.get_cached_docs_directory() is None
        docs.mkdir()
        assert cache.get_cached_docs_directory() == docs

    def test_clear_cache(self, cache: CacheManager) -> None:
        cache.save_cached_rules([Rule(id="todo", name="Todo")])
        cache.save_swiftlint_version("0.54.0")
        cache.clear_cache()
        assert cache.load_cached_rules() == []
        assert cache.get_cached_swiftlint_version() is None


class TestLoadJsonList:
    def test_reads_list(self, tmp_path: Path) -> None:
        path = tmp_path / "items.json"
        path.write_text('[{"a": 1}]', encoding="utf-8")
        assert load_json_list(path) == [{"a": 1}]

    def test_invalid_content(self, tmp_path: Path) -> None:
        path = tmp_path / "items.json"
        path.write_text('{"a": 1}', encoding="utf-8")
        assert load_json_list(path) == []
        path.write_text("oops", encoding="utf-8")
        assert load_json_list(path) == []
        assert load_json_list(tmp_path / "missing.json") == []
