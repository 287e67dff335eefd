"""Unit tests for locale file resolution."""
import os

from ghost_lens.locale_resolver import (
    discovery_patterns,
    find_locale_candidates,
    matches_discovery_pattern,
    resolve_locale_file
)


def touch(path):
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write('{}')
    return str(path)


class TestResolveLocaleFile:

    def test_manual_path_wins_when_it_exists(self, workspace):
        touch(workspace / "locales" / "en.json")
        manual = touch(workspace / "config" / "strings.json")

        result = resolve_locale_file(str(workspace), manual_path="config/strings.json")

        assert result == os.path.abspath(manual)

    def test_missing_manual_path_falls_back_to_discovery(self, workspace):
        discovered = touch(workspace / "locales" / "en.json")

        result = resolve_locale_file(str(workspace), manual_path="config/strings.json")

        assert result == os.path.abspath(discovered)

    def test_manual_path_pointing_at_directory_is_ignored(self, workspace):
        (workspace / "config").mkdir()
        discovered = touch(workspace / "de.json")

        assert resolve_locale_file(str(workspace), manual_path="config") == os.path.abspath(discovered)

    def test_excluded_directories_are_skipped(self, workspace):
        touch(workspace / "node_modules" / "lib" / "en.json")
        touch(workspace / "dist" / "en.json")
        touch(workspace / ".git" / "en.json")

        assert resolve_locale_file(str(workspace)) is None

    def test_nothing_found_returns_none(self, workspace):
        touch(workspace / "package.json")
        touch(workspace / "src" / "app.json")

        assert resolve_locale_file(str(workspace)) is None

    def test_missing_workspace_returns_none(self, tmp_path):
        assert resolve_locale_file(str(tmp_path / "gone")) is None
        assert resolve_locale_file(None) is None

    def test_first_candidate_in_walk_order_wins(self, workspace):
        touch(workspace / "src" / "locales" / "fr.json")
        shallow = touch(workspace / "en-US.json")

        assert resolve_locale_file(str(workspace)) == os.path.abspath(shallow)


class TestFindLocaleCandidates:

    def test_candidates_are_capped(self, workspace):
        for code in ("de", "en", "es", "fr", "it", "ja", "pt"):
            touch(workspace / "locales" / f"{code}.json")

        candidates = list(find_locale_candidates(str(workspace)))

        assert len(candidates) == 5
        assert [os.path.basename(c) for c in candidates] == ["de.json", "en.json", "es.json", "fr.json", "it.json"]

    def test_custom_extensions_and_codes(self, workspace):
        touch(workspace / "i18n" / "nl.yml")
        touch(workspace / "i18n" / "en.json")

        candidates = list(find_locale_candidates(str(workspace), locale_codes=["nl"], extensions=["yml"]))

        assert [os.path.basename(c) for c in candidates] == ["nl.yml"]

    def test_zero_cap_finds_nothing(self, workspace):
        touch(workspace / "en.json")
        assert list(find_locale_candidates(str(workspace), max_candidates=0)) == []


class TestDiscoveryPattern:

    def test_patterns(self):
        assert discovery_patterns(["en", "de"], ["json", ".yml"]) == ["en*.json", "en*.yml", "de*.json", "de*.yml"]

    def test_matches(self):
        assert matches_discovery_pattern("en.json")
        assert matches_discovery_pattern(os.path.join("src", "locales", "ru_RU.json"))
        assert not matches_discovery_pattern("nl.json")
        assert not matches_discovery_pattern("en.yaml")
        assert not matches_discovery_pattern(os.path.join("node_modules", "pkg", "en.json"))
