"""End-to-end tests for discover() / app_dependencies()."""

from __future__ import annotations

import os

import pytest
from conftest import DictIndex, write
from structlog.testing import capture_logs

from rdeps.discovery.ignore import StaticIgnoreList
from rdeps.discovery.index import LibraryIndex
from rdeps.discovery.models import ProjectType
from rdeps.discovery.scanner import app_dependencies, discover
from rdeps.exceptions import ProjectNotFoundError


class TestApplicationProjects:
    def test_scan_and_closure(self, project):
        write(project / "analysis.R", "library(shiny)\nx <- dplyr::filter(df, y > 1)\n")
        index = DictIndex({"shiny": {"Imports": ["httr"]}, "dplyr": {}, "httr": {}})
        result = discover(project, index, implicit_runtime=False)
        assert result.project_type is ProjectType.APPLICATION
        assert result.direct == ["dplyr", "shiny"]
        assert result.packages == ["dplyr", "httr", "shiny"]
        assert result.implicit == []

    def test_implicit_runtime_added_by_default(self, project):
        write(project / "a.R", "library(zoo)\n")
        assert app_dependencies(project, DictIndex({"zoo": {}})) == ["packrat", "zoo"]
        assert discover(project, DictIndex({"zoo": {}})).implicit == ["packrat"]

    def test_runtime_not_taken_from_sources(self, project):
        write(project / "a.R", "library(packrat)\npackrat::snapshot()\n")
        result = discover(project, DictIndex({}), implicit_runtime=False)
        assert result.direct == []
        assert result.packages == []

    def test_implicit_shiny_from_server_entry(self, project):
        write(project / "server.R", "shinyServer(function(input, output) {\n  output$x <- 1\n})\n")
        write(project / "ui.R", "fluidPage(titlePanel('hi'))\n")
        result = discover(project, DictIndex({}))
        assert result.packages == ["packrat", "shiny"]
        assert result.implicit == ["packrat", "shiny"]

    def test_shiny_not_implicit_when_found(self, project):
        write(project / "app.R", "library(shiny)\nshinyApp(ui, server)\n")
        result = discover(project, DictIndex({"shiny": {}}), implicit_runtime=False)
        assert result.packages == ["shiny"]
        assert result.implicit == []

    def test_ignored_implicit_packages_left_out(self, project):
        write(project / "server.R", "shinyServer(function(input, output) NULL)\n")
        ignore = StaticIgnoreList(["shiny", "packrat"])
        result = discover(project, DictIndex({}), ignore=ignore)
        assert result.packages == []
        assert result.implicit == []

    def test_ignored_shiny_keeps_runtime(self, project):
        write(project / "app.R", "shinyApp(ui, server)\n")
        result = discover(project, DictIndex({}), ignore=StaticIgnoreList(["shiny"]))
        assert result.packages == ["packrat"]

    def test_ignore_list(self, project):
        write(project / "a.R", "library(A)\nlibrary(X)\n")
        index = DictIndex({"A": {"Imports": ["X", "B"]}, "B": {}, "X": {}})
        result = discover(
            project, index, ignore=StaticIgnoreList(["X"]), implicit_runtime=False
        )
        assert result.direct == ["A"]
        assert result.packages == ["A", "B"]

    def test_ignore_list_from_options_file(self, project):
        write(project / "packrat" / "packrat.opts", "ignored.packages: devtools\n")
        write(project / "a.R", "library(devtools)\nlibrary(glue)\n")
        result = discover(project, DictIndex({"glue": {}}), implicit_runtime=False)
        assert result.packages == ["glue"]

    def test_literate_documents(self, project):
        write(
            project / "report.Rmd",
            "---\nruntime: shiny\n---\n\n```{r}\nlibrary(leaflet)\n```\n",
        )
        index = DictIndex({"rmarkdown": {"Imports": ["knitr"]}, "knitr": {}})
        result = discover(project, index, implicit_runtime=False)
        assert result.direct == ["leaflet", "rmarkdown", "shiny"]
        assert result.packages == ["knitr", "leaflet", "rmarkdown", "shiny"]

    def test_bad_file_does_not_abort(self, project):
        write(project / "good.R", "library(glue)\n")
        write(project / "broken.R", "library(\n")
        with capture_logs() as logs:
            result = discover(project, DictIndex({"glue": {}}), implicit_runtime=False)
        assert result.packages == ["glue"]
        assert "extract.parse_failed" in [e["event"] for e in logs]

    def test_long_else_if_chain_is_scanned(self, project):
        branches = "".join(f"  }} else if (x == {i}) {{\n    {i}\n" for i in range(1, 400))
        write(
            project / "deep.R",
            "f <- function(x) {\n  if (x == 0) {\n    0\n"
            + branches
            + "  } else {\n    jsonlite::toJSON(x)\n  }\n}\n",
        )
        write(project / "ok.R", "library(shiny)\n")
        result = discover(project, DictIndex({"jsonlite": {}, "shiny": {}}), implicit_runtime=False)
        assert result.packages == ["jsonlite", "shiny"]

    def test_excessive_nesting_does_not_abort(self, project):
        write(project / "nested.R", "(" * 3000 + "rlang::abort()" + ")" * 3000 + "\n")
        write(project / "ok.R", "library(shiny)\n")
        with capture_logs() as logs:
            result = discover(project, DictIndex({"shiny": {}}), implicit_runtime=False)
        assert result.packages == ["shiny"]
        failed = [e for e in logs if e["event"] == "extract.parse_failed"]
        assert [e["path"] for e in failed] == [str(project / "nested.R")]

    def test_drop_base(self, project):
        write(project / "a.R", "library(stats)\nlibrary(zoo)\n")
        result = discover(project, DictIndex({"zoo": {}}), implicit_runtime=False, drop_base=True)
        assert result.packages == ["zoo"]

    def test_custom_fields(self, project):
        write(project / "a.R", "library(A)\n")
        index = DictIndex({"A": {"Imports": ["B"], "Suggests": ["S"]}, "B": {}, "S": {}})
        result = discover(project, index, fields=["Suggests"], implicit_runtime=False)
        assert result.packages == ["A", "S"]


class TestLibraryProjects:
    def test_direct_from_description(self, project):
        write(
            project / "DESCRIPTION",
            "Package: mypkg\nImports: A, B\nSuggests: testthat\nLinkingTo: Rcpp\n",
        )
        # sources are not scanned for library projects
        write(project / "R" / "zzz.R", "library(hidden)\n")
        index = DictIndex({"A": {"Imports": ["C"]}, "B": {}, "C": {}, "testthat": {}, "Rcpp": {}})
        result = discover(project, index, implicit_runtime=False)
        assert result.project_type is ProjectType.LIBRARY
        assert result.direct == ["A", "B", "Rcpp", "testthat"]
        assert result.packages == ["A", "B", "C", "Rcpp", "testthat"]

    def test_suggests_of_dependencies_not_followed(self, project):
        write(project / "DESCRIPTION", "Package: mypkg\nImports: A\n")
        index = DictIndex({"A": {"Suggests": ["S"]}, "S": {}})
        assert discover(project, index, implicit_runtime=False).packages == ["A"]

    def test_cyclic_manifests(self, project, library):
        write(project / "DESCRIPTION", "Package: mypkg\nImports: A\n")
        library.install("A", Imports="B")
        library.install("B", Depends="A")
        index = LibraryIndex([library.path])
        assert discover(project, index, implicit_runtime=False).packages == ["A", "B"]

    def test_ignored_in_description(self, project):
        write(project / "DESCRIPTION", "Package: mypkg\nImports: A, X\n")
        index = DictIndex({"A": {"Imports": ["X"]}, "X": {}})
        result = discover(project, index, ignore=StaticIgnoreList(["X"]), implicit_runtime=False)
        assert result.packages == ["A"]


class TestDeterminism:
    def test_idempotent(self, project):
        for i, pkg in enumerate(["zoo", "abind", "Matrix", "data.table"]):
            write(project / f"dir{i}" / f"f{i}.R", f"library({pkg})\n")
        index = DictIndex({})
        first = app_dependencies(project, index)
        second = app_dependencies(project, index)
        assert first == second == ["Matrix", "abind", "data.table", "packrat", "zoo"]

    def test_independent_of_listing_order(self, project, monkeypatch):
        for name in ["b.R", "a.R", "c.R"]:
            write(project / name, f"library({name[0]}pkg)\n")
        real_walk = os.walk

        def reversed_walk(top, *args, **kwargs):
            for dirpath, dirnames, filenames in real_walk(top, *args, **kwargs):
                filenames.reverse()
                yield dirpath, dirnames, filenames

        expected = app_dependencies(project, DictIndex({}))
        monkeypatch.setattr("rdeps.discovery.registry.os.walk", reversed_walk)
        assert app_dependencies(project, DictIndex({})) == expected


class TestErrors:
    def test_missing_project(self, tmp_path):
        with pytest.raises(ProjectNotFoundError, match="not found"):
            discover(tmp_path / "nope", DictIndex({}))

    def test_file_is_not_a_project(self, tmp_path):
        path = write(tmp_path / "a.R", "library(x)\n")
        with pytest.raises(ProjectNotFoundError):
            discover(path, DictIndex({}))
