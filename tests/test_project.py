"""Tests for project classification, Shiny detection and ignore lists."""

from __future__ import annotations

from conftest import write
from structlog.testing import capture_logs

from rdeps.discovery.ignore import IgnoreListProvider, OptionsIgnoreList, StaticIgnoreList
from rdeps.discovery.project import ProjectType, classify_project, is_shiny_app


class TestClassifyProject:
    def test_no_description_is_application(self, project):
        assert classify_project(project) is ProjectType.APPLICATION

    def test_description_without_type_is_library(self, project):
        write(project / "DESCRIPTION", "Package: a\nImports: b\n")
        assert classify_project(project) is ProjectType.LIBRARY

    def test_type_package_is_library(self, project):
        write(project / "DESCRIPTION", "Package: a\nType: Package\n")
        assert classify_project(project) is ProjectType.LIBRARY

    def test_other_type_is_application(self, project):
        write(project / "DESCRIPTION", "Title: My app\nType: Shiny\n")
        assert classify_project(project) is ProjectType.APPLICATION

    def test_type_is_case_sensitive(self, project):
        write(project / "DESCRIPTION", "Package: a\nType: package\n")
        assert classify_project(project) is ProjectType.APPLICATION


class TestIsShinyApp:
    def test_plain_directory(self, project):
        write(project / "analysis.R", "library(ggplot2)\n")
        assert not is_shiny_app(project)

    def test_description_type(self, project):
        write(project / "DESCRIPTION", "Title: x\nType: SHINY\n")
        assert is_shiny_app(project)

    def test_server_entry(self, project):
        write(project / "server.R", "shinyServer (function(input, output) {})\n")
        assert is_shiny_app(project)

    def test_server_without_call(self, project):
        write(project / "server.R", "function(input, output) {}\n")
        assert not is_shiny_app(project)

    def test_single_file_app(self, project):
        write(project / "app.R", "ui <- fluidPage()\nshinyApp(ui, server)\n")
        assert is_shiny_app(project)

    def test_patterns_are_file_specific(self, project):
        write(project / "app.R", "shinyServer(function(input, output) {})\n")
        write(project / "server.R", "shinyApp(ui, server)\n")
        assert not is_shiny_app(project)

    def test_entry_files_only_at_root(self, project):
        write(project / "inst" / "app.R", "shinyApp(ui, server)\n")
        assert not is_shiny_app(project)


class TestIgnoreLists:
    def test_static(self):
        ignore = StaticIgnoreList(["a", "", "b"])
        assert isinstance(ignore, IgnoreListProvider)
        assert ignore.ignored_packages() == {"a", "b"}

    def test_options_file(self, project):
        write(
            project / "packrat" / "packrat.opts",
            "auto.snapshot: TRUE\nignored.packages: devtools, testthat\n    roxygen2\n",
        )
        ignore = OptionsIgnoreList(project)
        assert isinstance(ignore, IgnoreListProvider)
        assert ignore.ignored_packages() == {"devtools", "testthat", "roxygen2"}

    def test_options_file_missing(self, project):
        assert OptionsIgnoreList(project).ignored_packages() == set()

    def test_options_without_ignored_packages(self, project):
        write(project / "packrat" / "packrat.opts", "auto.snapshot: TRUE\n")
        assert OptionsIgnoreList(project).ignored_packages() == set()

    def test_options_custom_reserved_dir(self, project):
        write(project / "state" / "packrat.opts", "ignored.packages: x\n")
        assert OptionsIgnoreList(project, reserved_dir="state").ignored_packages() == {"x"}

    def test_malformed_options_file(self, project):
        write(project / "packrat" / "packrat.opts", "not dcf at all\n")
        with capture_logs() as logs:
            assert OptionsIgnoreList(project).ignored_packages() == set()
        assert logs[0]["event"] == "ignore.options_unreadable"
