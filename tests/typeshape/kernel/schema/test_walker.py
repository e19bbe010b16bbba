"""Tests for TypeWalker dispatch, reference caching and deduplication."""

import pytest

from typeshape.kernel.config.models import DerivationConfig
from typeshape.kernel.exceptions import CyclicAnonymousTypeError
from typeshape.kernel.logging import reset_logging
from typeshape.kernel.ports.type_provider import Accessibility, TypeKind
from typeshape.kernel.schema.walker import (
    DerivationContext,
    DerivationMode,
    TypeWalker,
    derive_schema,
)
from typeshape.stdlib.adapters.descriptor_graph import DescriptorGraph, TypeNode

REF = "#/components/schemas/"


def make_pair(graph: DescriptorGraph, second: str = "number") -> TypeNode:
    pair = graph.nominal("Pair")
    pair.add_property("first", graph.primitive("string"))
    pair.add_property("second", graph.primitive(second))
    return pair


class TestDocumentedExamples:
    """End-to-end shapes for the canonical examples."""

    def test_enum_like_union(self, graph, walker):
        """Test a union of enum literals becomes a string enum in declared order."""
        status = graph.union(graph.enum_literal("Ok"), graph.enum_literal("Error"))

        document = walker.derive_document(status)

        assert document.root.to_dict() == {"type": "string", "enum": ["Ok", "Error"]}
        assert len(document.registry) == 0

    def test_self_referencing_node(self, graph, walker):
        """Test a recursive nominal type is registered once with a self reference."""
        node = graph.nominal("Node")
        node.add_property("value", graph.primitive("number"))
        node.add_property("next", node, optional=True)

        document = walker.derive_document(node)

        assert document.root.to_dict() == {"$ref": f"{REF}Node"}
        assert document.registry.names() == ["Node"]
        assert document.registry["Node"].to_dict() == {
            "type": "object",
            "properties": {
                "value": {"type": "number"},
                "next": {"$ref": f"{REF}Node"},
            },
            "required": ["value"],
        }

    def test_array_of_strings(self, graph, walker):
        """Test an array of a primitive."""
        document = walker.derive_document(graph.array(graph.primitive("string")))
        assert document.root.to_dict() == {"type": "array", "items": {"type": "string"}}

    def test_identical_pairs_are_coalesced(self, graph, walker):
        """Test two unrelated, identically shaped Pair types share one schema."""
        holder = graph.nominal("Holder")
        holder.add_property("left", make_pair(graph))
        holder.add_property("right", make_pair(graph))

        document = walker.derive_document(holder)

        assert document.registry.names() == ["Pair", "Holder"]
        properties = document.registry["Holder"].to_dict()["properties"]
        assert properties["left"] == {"$ref": f"{REF}Pair"}
        assert properties["right"] == {"$ref": f"{REF}Pair"}


class TestDispatch:
    """Test dispatch over type kinds."""

    def test_boolean_is_never_an_enum(self, graph, walker):
        """Test a boolean modelled as a true | false union stays a boolean."""
        boolean = TypeNode(
            TypeKind.BOOLEAN,
            constituents=[graph.enum_literal(True), graph.enum_literal(False)],
        )
        assert walker.derive_document(boolean).root.to_dict() == {"type": "boolean"}

    def test_mixed_union_becomes_one_of(self, graph, walker):
        """Test a union with a non-literal member renders as oneOf."""
        union = graph.union(graph.primitive("string"), graph.primitive("number"))
        assert walker.derive_document(union).root.to_dict() == {
            "oneOf": [{"type": "string"}, {"type": "number"}]
        }

    def test_literal_mixed_with_primitive_is_not_enum(self, graph, walker):
        """Test an enum literal alongside a primitive does not produce an enum."""
        union = graph.union(graph.enum_literal("a"), graph.primitive("number"))
        rendered = walker.derive_document(union).root.to_dict()
        assert "oneOf" in rendered
        assert "enum" not in rendered

    def test_union_members_are_referenced(self, graph, walker):
        """Test nominal union members are derived in reference mode."""
        cat = graph.nominal("Cat")
        cat.add_property("meows", graph.boolean())
        dog = graph.nominal("Dog")
        dog.add_property("barks", graph.boolean())

        document = walker.derive_document(graph.union(cat, dog))

        assert document.root.to_dict() == {
            "oneOf": [{"$ref": f"{REF}Cat"}, {"$ref": f"{REF}Dog"}]
        }
        assert document.registry.names() == ["Cat", "Dog"]

    def test_intersection_becomes_all_of(self, graph, walker):
        """Test an intersection renders as allOf of references."""
        named = graph.nominal("Named")
        named.add_property("name", graph.primitive("string"))
        aged = graph.nominal("Aged")
        aged.add_property("age", graph.primitive("number"))

        document = walker.derive_document(graph.intersection(named, aged))

        assert document.root.to_dict() == {
            "allOf": [{"$ref": f"{REF}Named"}, {"$ref": f"{REF}Aged"}]
        }

    def test_lazy_wrapper_is_unwrapped(self, graph, walker):
        """Test a promise-like wrapper is replaced by its payload."""
        user = graph.nominal("User")
        user.add_property("id", graph.primitive("string"))

        document = walker.derive_document(graph.lazy(graph.array(user)))

        assert document.root.to_dict() == {"type": "array", "items": {"$ref": f"{REF}User"}}

    def test_lazy_wrapper_without_argument_is_unconstrained(self, graph, walker):
        """Test a wrapper with no payload degrades to any."""
        assert walker.derive_document(graph.lazy()).root.to_dict() == {"type": "any"}

    def test_date_builtin(self, graph, walker):
        """Test a Date-like nominal type renders as a date string."""
        document = walker.derive_document(graph.nominal("Date"))
        assert document.root.to_dict() == {"type": "string", "format": "date"}
        assert len(document.registry) == 0

    def test_object_builtin(self, graph, walker):
        """Test the universal Object type renders as unconstrained."""
        assert walker.derive_document(graph.nominal("Object")).root.to_dict() == {"type": "any"}

    def test_anonymous_type_is_inlined(self, graph, walker):
        """Test an anonymous structure is expanded in place and never registered."""
        shape = graph.anonymous()
        shape.add_property("x", graph.primitive("number"))

        document = walker.derive_document(graph.array(shape))

        assert document.root.to_dict() == {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"x": {"type": "number"}},
                "required": ["x"],
            },
        }
        assert len(document.registry) == 0

    def test_index_signature_becomes_additional_properties(self, graph, walker):
        """Test a catch-all index signature is attached as additionalProperties."""
        scores = graph.anonymous(index_type=graph.primitive("number"))
        assert walker.derive_document(scores).root.to_dict() == {
            "type": "object",
            "properties": {},
            "additionalProperties": {"type": "number"},
        }

    def test_fallback_uses_rendering(self, graph, walker):
        """Test unsupported kinds render as their textual form."""
        assert walker.derive_document(graph.other("symbol")).root.to_dict() == {"type": "symbol"}

    def test_inline_mode_expands_nominal(self, graph, walker):
        """Test inline mode expands a nominal type instead of referencing it."""
        point = graph.nominal("Point")
        point.add_property("x", graph.primitive("number"))
        ctx = DerivationContext()

        fragment = walker.derive(point, ctx, DerivationMode.INLINE)

        assert fragment.to_dict()["properties"] == {"x": {"type": "number"}}
        assert len(ctx.registry) == 0
        assert len(ctx.cache) == 0


class TestMemberExpansion:
    """Test which members appear in properties and required."""

    def test_hidden_and_callable_members_are_dropped(self, graph, walker):
        """Test private, protected, method and function-typed members are absent."""
        account = graph.nominal("Account")
        account.add_property("id", graph.primitive("string"))
        account.add_property(
            "secret", graph.primitive("string"), accessibility=Accessibility.PRIVATE
        )
        account.add_property(
            "audit", graph.primitive("string"), accessibility=Accessibility.PROTECTED
        )
        account.add_property("save", graph.function(), method=True)
        account.add_property("onChange", graph.function("(value: string) => void"))

        schema = walker.derive_document(account).registry["Account"].to_dict()

        assert list(schema["properties"]) == ["id"]
        assert schema["required"] == ["id"]

    def test_optional_members_are_not_required(self, graph, walker):
        """Test only members without an optionality marker are required."""
        item = graph.nominal("Item")
        item.add_property("sku", graph.primitive("string"))
        item.add_property("note", graph.primitive("string"), optional=True)

        schema = walker.derive_document(item).registry["Item"].to_dict()

        assert schema["required"] == ["sku"]
        assert set(schema["properties"]) == {"sku", "note"}

    def test_no_required_members_omits_required(self, graph, walker):
        """Test an object whose members are all optional renders no required list."""
        patch = graph.nominal("Patch")
        patch.add_property("name", graph.primitive("string"), optional=True)

        schema = walker.derive_document(patch).registry["Patch"].to_dict()

        assert "required" not in schema

    def test_member_without_type_is_any(self, graph, walker):
        """Test a member with no resolvable type falls back to any."""
        legacy = graph.nominal("Legacy")
        legacy.add_property("payload")
        legacy.add_property("extra", optional=True)

        schema = walker.derive_document(legacy).registry["Legacy"].to_dict()

        assert schema["properties"] == {"payload": {"type": "any"}, "extra": {"type": "any"}}
        assert schema["required"] == ["payload"]

    def test_declared_order_is_kept(self, graph, walker):
        """Test properties keep declaration order."""
        record = graph.nominal("Record")
        for name in ("zeta", "alpha", "mid"):
            record.add_property(name, graph.primitive("string"))

        schema = walker.derive_document(record).registry["Record"].to_dict()

        assert list(schema["properties"]) == ["zeta", "alpha", "mid"]


class TestDescriptions:
    """Test documentation comments are carried into descriptions."""

    def test_type_and_member_documentation(self, graph, walker):
        """Test type docs land on the registered schema and member docs on properties."""
        user = graph.nominal("User", documentation="A registered user")
        user.add_property("name", graph.primitive("string"), documentation="Display name")

        document = walker.derive_document(user)

        assert document.root.to_dict() == {"$ref": f"{REF}User"}
        schema = document.registry["User"].to_dict()
        assert schema["description"] == "A registered user"
        assert schema["properties"]["name"] == {"type": "string", "description": "Display name"}

    def test_member_documentation_on_reference(self, graph, walker):
        """Test a member documentation comment decorates a reference."""
        user = graph.nominal("User")
        user.add_property("id", graph.primitive("string"))
        post = graph.nominal("Post")
        post.add_property("author", user, documentation="Who wrote it")

        schema = walker.derive_document(post).registry["Post"].to_dict()

        assert schema["properties"]["author"] == {
            "$ref": f"{REF}User",
            "description": "Who wrote it",
        }

    def test_member_documentation_wins_over_type_documentation(self, graph, walker):
        """Test the member's own comment replaces the type comment."""
        meters = graph.primitive("number", documentation="Length in metres")
        room = graph.nominal("Room")
        room.add_property("width", meters, documentation="Wall to wall")
        room.add_property("height", meters)

        properties = walker.derive_document(room).registry["Room"].to_dict()["properties"]

        assert properties["width"]["description"] == "Wall to wall"
        assert properties["height"]["description"] == "Length in metres"

    def test_descriptions_can_be_disabled(self, graph):
        """Test include_descriptions=False drops every description."""
        user = graph.nominal("User", documentation="A registered user")
        user.add_property("name", graph.primitive("string"), documentation="Display name")
        walker = TypeWalker(graph, DerivationConfig(include_descriptions=False))

        schema = walker.derive_document(user).registry["User"].to_dict()

        assert "description" not in schema
        assert schema["properties"]["name"] == {"type": "string"}


class TestCycles:
    """Test termination on recursive type graphs."""

    def test_mutual_recursion(self, graph, walker):
        """Test mutually recursive types reference each other."""
        author = graph.nominal("Author")
        book = graph.nominal("Book")
        author.add_property("books", graph.array(book))
        book.add_property("author", author, optional=True)

        document = walker.derive_document(author)

        assert document.registry.names() == ["Book", "Author"]
        assert document.registry["Book"].to_dict()["properties"]["author"] == {
            "$ref": f"{REF}Author"
        }
        assert document.registry["Author"].to_dict()["properties"]["books"] == {
            "type": "array",
            "items": {"$ref": f"{REF}Book"},
        }
        assert document.dangling_references() == []

    def test_cycle_through_anonymous_and_nominal(self, graph, walker):
        """Test a cycle that passes through a nominal type terminates."""
        wrapper = graph.anonymous()
        target = graph.nominal("Target")
        wrapper.add_property("target", target)
        target.add_property("wrapper", wrapper)

        document = walker.derive_document(wrapper)

        assert document.root.to_dict()["properties"]["target"] == {"$ref": f"{REF}Target"}
        assert document.registry["Target"].to_dict()["properties"]["wrapper"] == {
            "type": "object",
            "properties": {"target": {"$ref": f"{REF}Target"}},
            "required": ["target"],
        }

    def test_anonymous_only_cycle_is_rejected(self, graph, walker):
        """Test a cycle through anonymous types only raises instead of recursing."""
        loop = graph.anonymous()
        loop.add_property("again", loop)

        with pytest.raises(CyclicAnonymousTypeError):
            walker.derive_document(loop)

    def test_repeated_anonymous_siblings_are_not_a_cycle(self, graph, walker):
        """Test the same anonymous type used twice side by side is fine."""
        shape = graph.anonymous()
        shape.add_property("x", graph.primitive("number"))
        outer = graph.anonymous()
        outer.add_property("a", shape)
        outer.add_property("b", shape)

        rendered = walker.derive_document(outer).root.to_dict()

        assert rendered["properties"]["a"] == rendered["properties"]["b"]


class TestNamingAndDeduplication:
    """Test name allocation and structural coalescing."""

    def test_different_shapes_get_suffixed_names(self, graph, walker):
        """Test same-named types with different members are disambiguated."""
        holder = graph.nominal("Holder")
        holder.add_property("a", make_pair(graph, "number"))
        holder.add_property("b", make_pair(graph, "boolean"))
        holder.add_property("c", make_pair(graph, "string"))

        document = walker.derive_document(holder)

        assert document.registry.names() == ["Pair", "Pair_1", "Pair_2", "Holder"]
        properties = document.registry["Holder"].to_dict()["properties"]
        assert [p["$ref"] for p in properties.values()] == [
            f"{REF}Pair",
            f"{REF}Pair_1",
            f"{REF}Pair_2",
        ]

    def test_same_shape_different_names_are_kept(self, graph, walker):
        """Test coalescing requires the same declared name."""
        left = graph.nominal("Left")
        left.add_property("x", graph.primitive("number"))
        right = graph.nominal("Right")
        right.add_property("x", graph.primitive("number"))

        _, registry = walker.derive_components([left, right])

        assert registry.names() == ["Left", "Right"]

    def test_nested_type_never_takes_ancestor_name(self, graph, walker):
        """Test a nested type sharing an in-progress ancestor's name gets a suffix."""
        outer = graph.nominal("Item")
        inner = graph.nominal("Item")
        inner.add_property("x", graph.primitive("number"))
        outer.add_property("inner", inner)
        outer.add_property("label", graph.primitive("string"))

        document = walker.derive_document(outer)

        assert document.root.to_dict() == {"$ref": f"{REF}Item"}
        assert document.registry.names() == ["Item_1", "Item"]
        assert document.registry["Item"].to_dict()["properties"]["inner"] == {
            "$ref": f"{REF}Item_1"
        }

    def test_recursive_duplicates_keep_their_own_schema(self, graph, walker):
        """Test a self-referencing duplicate is never coalesced into a dangling name."""
        holder = graph.nominal("Holder")
        for field_name in ("a", "b"):
            node = graph.nominal("Node")
            node.add_property("value", graph.primitive("number"))
            node.add_property("next", node, optional=True)
            holder.add_property(field_name, node)

        document = walker.derive_document(holder)

        assert document.registry.names() == ["Node", "Node_1", "Holder"]
        assert document.registry["Node_1"].to_dict()["properties"]["next"] == {
            "$ref": f"{REF}Node_1"
        }
        assert document.dangling_references() == []

    def test_coalesced_type_seen_again_coalesces_again(self, graph, walker):
        """Test a second sighting of a coalesced type resolves to the same schema."""
        first = make_pair(graph)
        second = make_pair(graph)
        holder = graph.nominal("Holder")
        holder.add_property("x", first)
        holder.add_property("y", second)
        holder.add_property("z", second)

        document = walker.derive_document(holder)

        assert document.registry.names() == ["Pair", "Holder"]
        properties = document.registry["Holder"].to_dict()["properties"]
        assert [p["$ref"] for p in properties.values()] == [f"{REF}Pair"] * 3
        assert document.dangling_references() == []

    def test_same_identity_is_registered_once(self, graph, walker):
        """Test repeated references to one type hit the cache."""
        tag = graph.nominal("Tag")
        tag.add_property("label", graph.primitive("string"))
        post = graph.nominal("Post")
        post.add_property("primary", tag)
        post.add_property("others", graph.array(tag))

        document = walker.derive_document(post)

        assert document.registry.names() == ["Tag", "Post"]


class TestTraversalScope:
    """Test context lifetime and multi-root traversal."""

    def test_each_document_starts_empty(self, graph, walker):
        """Test consecutive traversals do not share registry or cache."""
        pair = make_pair(graph)

        first = walker.derive_document(pair)
        second = walker.derive_document(pair)

        assert first.registry is not second.registry
        assert second.registry.names() == ["Pair"]

    def test_derive_components_shares_one_namespace(self, graph, walker):
        """Test roots walked together coalesce across roots."""
        roots, registry = walker.derive_components([make_pair(graph), make_pair(graph)])

        assert [root.to_dict() for root in roots] == [
            {"$ref": f"{REF}Pair"},
            {"$ref": f"{REF}Pair"},
        ]
        assert registry.names() == ["Pair"]

    def test_document_rendering(self, graph):
        """Test the document renders root and components together."""
        document = derive_schema(make_pair(graph), graph)

        assert document.to_dict() == {
            "schema": {"$ref": f"{REF}Pair"},
            "components": {
                "schemas": {
                    "Pair": {
                        "type": "object",
                        "properties": {
                            "first": {"type": "string"},
                            "second": {"type": "number"},
                        },
                        "required": ["first", "second"],
                    }
                }
            },
        }


class TestConfiguration:
    """Test derivation options."""

    def test_custom_ref_prefix(self, graph):
        """Test references use the configured prefix."""
        walker = TypeWalker(graph, DerivationConfig(ref_prefix="#/definitions/"))
        assert walker.derive_document(make_pair(graph)).root.to_dict() == {
            "$ref": "#/definitions/Pair"
        }

    def test_custom_builtin_nominals(self, graph):
        """Test configured builtin names render as fixed fragments."""
        config = DerivationConfig(
            builtin_nominals={"Money": {"type": "string", "format": "decimal"}}
        )
        walker = TypeWalker(graph, config)

        document = walker.derive_document(graph.nominal("Money"))

        assert document.root.to_dict() == {"type": "string", "format": "decimal"}
        assert len(document.registry) == 0

    def test_from_config_reads_configuration_file(self, graph, tmp_path, monkeypatch):
        """Test a walker built from a config file picks up its derivation section."""
        monkeypatch.delenv("TYPESHAPE_REF_PREFIX", raising=False)
        config_file = tmp_path / "typeshape.toml"
        config_file.write_text(
            '[logging]\nlevel = "WARNING"\nformat = "console"\n\n'
            '[derivation]\nref_prefix = "#/definitions/"\n',
            encoding="utf-8",
        )

        try:
            walker = TypeWalker.from_config(graph, config_file)
            root = walker.derive_document(make_pair(graph)).root
        finally:
            reset_logging()

        assert walker.config.ref_prefix == "#/definitions/"
        assert root.to_dict() == {"$ref": "#/definitions/Pair"}

    def test_default_walker_ignores_configuration_files(self, graph, tmp_path, monkeypatch):
        """Test a walker without explicit options uses the defaults."""
        (tmp_path / "typeshape.toml").write_text(
            '[derivation]\nref_prefix = "#/definitions/"\n', encoding="utf-8"
        )
        monkeypatch.chdir(tmp_path)

        assert TypeWalker(graph).config.ref_prefix == REF
