"""Tests for POM parsing and parent/BOM recursion."""

from conftest import pom_xml
from constants import Constants
from resolution.coordinate import Coordinate
from resolution.pom import PomDocument, PomHandler


class RecordingResolver:
    """Serves POMs by module id and records every lookup."""

    def __init__(self, poms):
        self.poms = poms
        self.calls = []

    def try_resolve(self, coordinate, repository, filename):
        self.calls.append((coordinate.module_id, repository, filename))
        return self.poms.get(coordinate.module_id)


class TestPomDocument:
    """Coordinate extraction and property substitution."""

    def test_yields_parent_and_managed_dependencies(self):
        """Test the parent and managed dependencies are extracted in order."""
        doc = PomDocument(pom_xml(
            "com.example", "lib", "1.0",
            parent=("com.example", "parent", "3"),
            managed=[("org.acme", "acme-bom", "2.1")],
        ))
        assert list(doc.coordinates()) == [
            ("parent", Coordinate("com.example", "parent", "3")),
            ("dependency", Coordinate("org.acme", "acme-bom", "2.1")),
        ]

    def test_substitutes_properties_and_project_references(self):
        """Test nested properties and inherited project values are substituted."""
        doc = PomDocument(pom_xml(
            None, "lib", None,
            parent=("com.example", "parent", "3"),
            managed=[("${project.groupId}", "other-bom", "${bom.version}"),
                     ("org.acme", "acme", "${project.version}")],
            properties={"bom.version": "${base.version}.1", "base.version": "5"},
        ))
        coords = [c for _, c in doc.coordinates()]
        assert Coordinate("com.example", "other-bom", "5.1") in coords
        assert Coordinate("org.acme", "acme", "3") in coords

    def test_unresolved_placeholder_is_skipped(self):
        """Test a coordinate with an unknown property is dropped."""
        doc = PomDocument(pom_xml("g", "lib", "1", managed=[("g", "x", "${missing}")]))
        assert list(doc.coordinates()) == []

    def test_self_referencing_property_terminates(self):
        """Test a self-referencing property stops at the depth guard."""
        doc = PomDocument(b"<project/>")
        doc.properties["loop"] = "${loop}x"
        assert doc.substitute("${loop}").endswith("x")

    def test_doubling_property_chain_is_capped(self):
        """Test properties that double at every level stay within the length cap."""
        levels = 22
        properties = {f"p{i}": f"${{p{i + 1}}}${{p{i + 1}}}" for i in range(levels)}
        properties[f"p{levels}"] = "x"
        doc = PomDocument(pom_xml("g", "lib", "1", managed=[("g", "x", "${p0}")], properties=properties))

        assert list(doc.coordinates()) == []
        assert len(doc.substitute("${p0}")) <= Constants.MAX_PROPERTY_LENGTH

    def test_short_expansion_within_cap(self):
        """Test a modest expansion is fully substituted."""
        doc = PomDocument(b"<project/>")
        doc.properties.update({"a": "${b}${b}", "b": "${c}${c}", "c": "1"})
        assert doc.substitute("${a}") == "1111"

    def test_exclusions_are_not_coordinates(self):
        """Test exclusions inside a managed dependency are ignored."""
        contents = (
            b"<project><dependencyManagement><dependencies><dependency>"
            b"<groupId>g</groupId><artifactId>a</artifactId><version>1</version>"
            b"<exclusions><exclusion><groupId>x</groupId><artifactId>y</artifactId></exclusion></exclusions>"
            b"</dependency></dependencies></dependencyManagement></project>"
        )
        assert [c for _, c in PomDocument(contents).coordinates()] == [Coordinate("g", "a", "1")]

    def test_malformed_xml_keeps_earlier_results(self):
        """Test coordinates before an XML error are still yielded."""
        contents = (
            b"<project><parent><groupId>g</groupId><artifactId>p</artifactId><version>1</version></parent>"
            b"<a></b></project>"
        )
        assert list(PomDocument(contents).coordinates()) == [("parent", Coordinate("g", "p", "1"))]

    def test_not_xml_yields_nothing(self):
        """Test non-XML content yields no coordinates."""
        assert list(PomDocument(b"this is not xml").coordinates()) == []


class TestPomHandler:
    """Recursive ancestor registration."""

    def test_parent_chain_is_followed_to_the_root(self):
        """Test A -> B -> C registers B and C and stops."""
        resolver = RecordingResolver({
            "com.example:b:1": pom_xml("com.example", "b", "1", parent=("com.example", "c", "1")),
            "com.example:c:1": pom_xml("com.example", "c", "1"),
        })
        a = pom_xml("com.example", "a", "1", parent=("com.example", "b", "1"))

        PomHandler(resolver).add_parent_poms(a, "https://repo.example/")

        assert resolver.calls == [
            ("com.example:b:1", "https://repo.example/", "b-1.pom"),
            ("com.example:c:1", "https://repo.example/", "c-1.pom"),
        ]

    def test_bom_is_followed_but_plain_managed_dependency_is_not(self):
        """Test only BOM imports are walked recursively."""
        resolver = RecordingResolver({
            "g:x-bom:1": pom_xml("g", "x-bom", "1", parent=("g", "bom-parent", "1")),
            "g:plain:1": pom_xml("g", "plain", "1", parent=("g", "plain-parent", "1")),
        })
        root = pom_xml("g", "root", "1", managed=[("g", "x-bom", "1"), ("g", "plain", "1")])

        PomHandler(resolver).add_parent_poms(root, "r/")

        looked_up = [call[0] for call in resolver.calls]
        assert looked_up == ["g:x-bom:1", "g:bom-parent:1", "g:plain:1"]

    def test_missing_parent_stops_quietly(self):
        """Test a parent that cannot be found ends the walk."""
        resolver = RecordingResolver({})
        PomHandler(resolver).add_parent_poms(pom_xml("g", "a", "1", parent=("g", "gone", "1")), "r/")
        assert [c[0] for c in resolver.calls] == ["g:gone:1"]

    def test_cycle_terminates(self):
        """Test mutually parented POMs are each looked up once."""
        resolver = RecordingResolver({
            "g:a:1": pom_xml("g", "a", "1", parent=("g", "b", "1")),
            "g:b:1": pom_xml("g", "b", "1", parent=("g", "a", "1")),
        })
        PomHandler(resolver).add_parent_poms(resolver.poms["g:a:1"], "r/")
        assert [c[0] for c in resolver.calls] == ["g:b:1", "g:a:1"]

    def test_depth_is_bounded(self):
        """Test recursion stops at max_depth."""
        poms = {f"g:p{i}:1": pom_xml("g", f"p{i}", "1", parent=("g", f"p{i + 1}", "1")) for i in range(20)}
        resolver = RecordingResolver(poms)
        PomHandler(resolver, max_depth=5).add_parent_poms(poms["g:p0:1"], "r/")
        assert len(resolver.calls) == 5
