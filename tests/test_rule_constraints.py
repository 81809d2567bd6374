from __future__ import annotations

from contract.models import Decision
from rules.constraints import (
    WELL_KNOWN_LAYERS,
    LayerBoundary,
    PlacementRule,
    compile_rule_set,
    extract_naming_rules,
    infer_layer_boundaries,
    normalize_convention,
)


def _decision(title: str, *constraints: str, **fields: object) -> Decision:
    return Decision.model_validate(
        {"title": title, "constraints": list(constraints), **fields}
    )


def test_constraint_sentence_defines_source_and_target_boundaries() -> None:
    boundaries = infer_layer_boundaries(
        [_decision("Hexagonal core", "domain layer must not import infrastructure")]
    )

    assert boundaries == (
        LayerBoundary(
            layer="domain",
            patterns=WELL_KNOWN_LAYERS["domain"],
            forbidden=("infrastructure",),
            decision="Hexagonal core",
        ),
        LayerBoundary(
            layer="infrastructure",
            patterns=WELL_KNOWN_LAYERS["infrastructure"],
        ),
    )


def test_constraint_sentence_variants() -> None:
    boundaries = infer_layer_boundaries(
        [
            _decision(
                "Boundaries",
                "The API module should not depend on the persistence layer.",
                "Billing cannot reference from shipping",
            )
        ]
    )

    by_layer = {b.layer: b for b in boundaries}
    assert by_layer["api"].forbidden == ("persistence",)
    assert by_layer["billing"].forbidden == ("shipping",)
    assert by_layer["billing"].patterns == ("billing",)
    assert by_layer["shipping"].forbidden == ()


def test_deprecated_decisions_are_ignored() -> None:
    boundaries = infer_layer_boundaries(
        [
            _decision(
                "Old rule",
                "domain must not import infrastructure",
                status="deprecated",
            )
        ]
    )

    assert boundaries == ()


def test_layered_architecture_decision_applies_default_table() -> None:
    boundaries = infer_layer_boundaries(
        [_decision("Clean architecture", description="Use-case centric layout")]
    )

    by_layer = {b.layer: b.forbidden for b in boundaries}
    assert by_layer == {
        "domain": ("infrastructure", "presentation", "application"),
        "infrastructure": ("presentation",),
        "presentation": (),
        "application": ("infrastructure", "presentation"),
    }


def test_default_table_is_restricted_to_layers_found_in_evidence() -> None:
    boundaries = infer_layer_boundaries(
        [
            _decision(
                "Repository pattern",
                evidence=["src/domain/order.ts", "src/infrastructure/order-repo.ts"],
            )
        ]
    )

    assert [(b.layer, b.forbidden) for b in boundaries] == [
        ("domain", ("infrastructure",)),
        ("infrastructure", ()),
    ]


def test_no_matching_signals_yields_no_boundaries() -> None:
    assert infer_layer_boundaries([_decision("Use TypeScript strict mode")]) == ()


def test_placement_rules_from_sentences_and_evidence() -> None:
    rule_set = compile_rule_set(
        [
            _decision(
                "Services",
                "Files matching '*.service.ts' should be in src/services.",
                "Place all controller files in `src/controllers`",
            ),
            _decision(
                "Repositories",
                "Repository files must use the Repository suffix",
                evidence=["src/data/user-repository.ts"],
            ),
        ]
    )

    assert rule_set.placement_rules == (
        PlacementRule("*.service.ts", ("src/services",), "Services"),
        PlacementRule("*.controller.*", ("src/controllers",), "Services"),
        PlacementRule("*repository*", ("src/data",), "Repositories"),
    )


def test_naming_rules_scope_from_evidence_and_suffixes() -> None:
    rules = extract_naming_rules(
        [
            _decision(
                "Kebab files",
                "Use kebab-case naming for files",
                evidence=["src/app/user-service.ts", "lib/x.ts", "README.md"],
            ),
            _decision("Pascal components", "Components follow PascalCase convention"),
            _decision(
                "Service suffix",
                "Files in src/services must end with `.service.ts`.",
            ),
        ]
    )

    assert [(r.convention, r.scope_dirs) for r in rules] == [
        ("kebab-case", ("src", "lib", ".")),
        ("PascalCase", ("src",)),
        ("suffix:.service.ts", ("src/services",)),
    ]
    assert rules[0].examples[0] == "user-service.ts"


def test_casing_mentioned_without_verb_is_still_a_naming_rule() -> None:
    rules = extract_naming_rules([_decision("Names", "File names are snake_case")])

    assert [r.convention for r in rules] == ["snake_case"]


def test_casing_named_before_file_word_is_not_lost() -> None:
    rules = extract_naming_rules([_decision("Names", "Use kebab-case file naming")])

    assert [r.convention for r in rules] == ["kebab-case"]


def test_normalize_convention_spellings() -> None:
    assert normalize_convention("kebab case") == "kebab-case"
    assert normalize_convention("Camel-Case") == "camelCase"
    assert normalize_convention("snake_case") == "snake_case"
    assert normalize_convention("consistent") == "consistent"
