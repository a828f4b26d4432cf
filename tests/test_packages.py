"""Tests for third-party package classification and version lookup."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from stampgraph.packages import PackageClassifier, extract_package_name, is_third_party_package


class TestIsThirdPartyPackage:
    @pytest.mark.parametrize(
        "specifier",
        ["react", "lodash/debounce", "@mui/material", "@mui/material/Button", "date-fns"],
    )
    def test_packages(self, specifier):
        assert is_third_party_package(specifier)

    @pytest.mark.parametrize(
        "specifier",
        ["./Button", "../utils", "/abs/path", "C:\\x", "node:fs", "Button", "", "   "],
    )
    def test_not_packages(self, specifier):
        assert not is_third_party_package(specifier)

    @pytest.mark.parametrize("specifier", ["Header", "UserCard", "Layout/Sidebar"])
    def test_component_names_stay_local(self, specifier):
        assert not is_third_party_package(specifier)
        assert extract_package_name(specifier) is None


class TestExtractPackageName:
    def test_plain(self):
        assert extract_package_name("react") == "react"

    def test_subpath(self):
        assert extract_package_name("lodash/debounce") == "lodash"

    def test_scoped(self):
        assert extract_package_name("@mui/material") == "@mui/material"

    def test_scoped_subpath(self):
        assert extract_package_name("@mui/material/Button") == "@mui/material"

    def test_not_a_package(self):
        assert extract_package_name("./local") is None
        assert extract_package_name("Card") is None


class TestPackageClassifier:
    def _write(self, root: Path, data) -> None:
        (root / "package.json").write_text(json.dumps(data))

    def test_section_precedence(self, tmp_path: Path):
        self._write(tmp_path, {
            "dependencies": {"react": "^18.2.0"},
            "devDependencies": {"react": "^17.0.0", "vitest": "1.0.0"},
            "peerDependencies": {"vitest": "0.9.0", "react-dom": "^18.0.0"},
        })
        classifier = PackageClassifier()
        assert classifier.get_version("react", tmp_path) == "^18.2.0"
        assert classifier.get_version("vitest", tmp_path) == "1.0.0"
        assert classifier.get_version("react-dom", tmp_path) == "^18.0.0"
        assert classifier.get_version("vue", tmp_path) is None

    def test_missing_file(self, tmp_path: Path):
        assert PackageClassifier().get_version("react", tmp_path) is None

    def test_invalid_json(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{broken")
        assert PackageClassifier().get_version("react", tmp_path) is None

    def test_non_object_json(self, tmp_path: Path):
        self._write(tmp_path, ["react"])
        assert PackageClassifier().get_version("react", tmp_path) is None

    def test_cached_per_instance(self, tmp_path: Path):
        self._write(tmp_path, {"dependencies": {"react": "18.0.0"}})
        classifier = PackageClassifier()
        assert classifier.get_version("react", tmp_path) == "18.0.0"

        self._write(tmp_path, {"dependencies": {"react": "19.0.0"}})
        assert classifier.get_version("react", tmp_path) == "18.0.0"
        assert PackageClassifier().get_version("react", tmp_path) == "19.0.0"

        classifier.clear_cache()
        assert classifier.get_version("react", tmp_path) == "19.0.0"

    @pytest.mark.asyncio
    async def test_async_lookup(self, tmp_path: Path):
        self._write(tmp_path, {"dependencies": {"@tanstack/react-query": "5.0.0"}})
        version = await PackageClassifier().get_version_async("@tanstack/react-query", tmp_path)
        assert version == "5.0.0"
