import logging

from booker.core.model import Level, NoteType

def read(ctx, path: str) -> str:
    return (ctx.config.vault_root / path).read_text(encoding="utf-8")

def exists(ctx, path: str) -> bool:
    return (ctx.config.vault_root / path).exists()

def test_recipe_writes_output(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({
            "type": "booker-recipe",
            "title": "Book Title",
            "output": "Output.md",
            "order": ["chapters/One", "chapters/Two"],
        }),
        "chapters/One.md": "---\nfoo: bar\n---\n# One\nIntro.",
        "chapters/Two.md": "# Two\nSecond.",
    })

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert read(ctx, "Output.md") == "# Book Title\n\n## One\nIntro.\n\n---\n\n## Two\nSecond.\n"
    assert outcome.status is Level.SUCCESS
    assert outcome.kind is NoteType.RECIPE
    assert outcome.artifact_path == "Output.md"
    assert notice.messages == ["✅ [Book Title] Generation completed successfully."]

def test_bundle_writes_targets_and_aggregate(make_booker, note) -> None:
    ctx, _ = make_booker({
        "RecipeOne.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "RecipeTwo.md": note({
            "type": "booker-recipe",
            "output": "dist/two.md",
            "order": ["chapters/Two"],
            "options": {"strip_title": True},
        }),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": ["RecipeOne", "RecipeTwo"],
            "aggregate": {"title": "All", "output": "dist/all.md"},
        }),
        "chapters/One.md": "# One\nOne content.",
        "chapters/Two.md": "Two content.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert read(ctx, "dist/one.md") == "## One\nOne content.\n"
    assert read(ctx, "dist/two.md") == "Two content.\n"
    assert read(ctx, "dist/all.md") == (
        "# All\n\n## one\n\n### One\nOne content.\n\n---\n\n## two\n\nTwo content.\n"
    )
    assert outcome.kind is NoteType.BUNDLE
    assert outcome.result.successes == 2
    assert outcome.result.aggregate.success is True

def test_bundle_of_bundles(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/livro.md", "order": ["chapters/One"]}),
        "Livro.md": note({
            "type": "booker-bundle",
            "targets": ["Recipe"],
            "aggregate": {"title": "Livro", "output": "dist/livro-final.md"},
        }),
        "Trilogia.md": note({
            "type": "booker-bundle",
            "targets": ["Livro"],
            "aggregate": {"title": "Trilogia", "output": "dist/trilogia.md"},
        }),
        "chapters/One.md": "# One\nOne content.",
    })

    ctx.build_runner.build_current_file("Trilogia.md")

    assert read(ctx, "dist/trilogia.md") == (
        "# Trilogia\n\n## livro-final\n\n## Livro\n\n### livro\n\n#### One\nOne content.\n"
    )
    assert notice.messages == [
        "ℹ️ [Trilogia] Running 1 target…",
        "ℹ️ [Livro] Running 1 target…",
        "✅ [Recipe] Generation completed successfully.",
        "✅ [Livro] Completed (✅1 ⚠️0 ❌0)",
        "✅ [Trilogia] Completed (✅1 ⚠️0 ❌0)",
    ]

def test_aggregate_heading_offset(make_booker, note) -> None:
    ctx, _ = make_booker({
        "Recipe.md": note({
            "type": "booker-recipe",
            "output": "dist/one.md",
            "order": ["chapters/One"],
            "options": {"heading_offset": 0},
        }),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": ["Recipe"],
            "aggregate": {"title": "All", "output": "dist/all.md", "options": {"heading_offset": 2}},
        }),
        "chapters/One.md": "# One\nContent.",
    })

    ctx.build_runner.build_current_file("Bundle.md")

    assert read(ctx, "dist/all.md") == "# All\n\n### one\n\n### One\nContent.\n"

def test_cycle_is_detected(make_booker, note) -> None:
    ctx, notice = make_booker({
        "BundleA.md": note({"type": "booker-bundle", "targets": ["BundleB"], "aggregate": {"output": "dist/a.md"}}),
        "BundleB.md": note({"type": "booker-bundle", "targets": ["BundleA"], "aggregate": {"output": "dist/b.md"}}),
    })

    outcome = ctx.build_runner.build_current_file("BundleA.md")

    text = "\n".join(notice.messages)
    assert "❌ [BundleA] These bundles reference each other in a loop:" in text
    assert "BundleA → BundleB → BundleA" in text
    assert outcome.status is Level.ERROR
    assert not exists(ctx, "dist/a.md")

def test_deprecated_types_warn(make_booker, note, caplog) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker", "output": "dist/recipe.md", "order": ["chapters/One"]}),
        "chapters/One.md": "# One\nOne content.",
    })

    with caplog.at_level(logging.WARNING, logger="booker"):
        outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert notice.messages[0].startswith("⚠️ [Recipe]")
    assert "deprecated Booker type" in notice.messages[0]
    assert notice.messages[-1] == "⚠️ [Recipe] Generation completed with warnings."
    assert outcome.status is Level.WARNING
    assert exists(ctx, "dist/recipe.md")
    assert "deprecated type" in caplog.text

def test_missing_output_is_reported(make_booker, note) -> None:
    ctx, notice = make_booker({"Recipe.md": note({"type": "booker-recipe", "order": ["Missing"]})})

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert "❌ [Recipe] This recipe has no output file." in "\n".join(notice.messages)
    assert outcome.status is Level.ERROR

def test_deprecated_target_schema_aborts_the_bundle(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/recipe.md", "order": ["chapters/One"]}),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": [{"name": "Inline", "output": "dist/inline.md", "order": ["chapters/One"]}],
            "aggregate": {"output": "dist/all.md"},
        }),
        "chapters/One.md": "# One\nOne content.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert "⚠️ [Bundle] This bundle uses the deprecated target schema." in "\n".join(notice.messages)
    assert outcome.status is Level.WARNING
    assert not exists(ctx, "dist/all.md")

def test_invalid_type(make_booker, note) -> None:
    ctx, notice = make_booker({"Plain.md": note({"type": "journal"}, "# Plain\n")})

    outcome = ctx.build_runner.build_current_file("Plain.md")

    assert notice.messages[0].startswith("❌ [Plain] This note isn’t a Booker recipe or bundle.")
    assert outcome.status is Level.ERROR

def test_recipe_with_no_resolved_sources_writes_nothing(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/out.md", "order": ["Ghost"]}),
    })

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.ERROR
    assert outcome.target.resolved_count == 0
    assert not exists(ctx, "dist/out.md")
    assert notice.messages[0].startswith("❌ [Recipe] None of the notes in `order` could be found.")

def test_standalone_recipe_tolerates_missing_links(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/out.md", "order": ["chapters/One", "Ghost"]}),
        "chapters/One.md": "# One\nText.",
    })

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.WARNING
    assert read(ctx, "dist/out.md") == "## One\nText.\n"
    assert notice.messages == [
        "⚠️ [Recipe] I couldn’t find 1 note(s): Ghost.",
        "⚠️ [Recipe] Generation completed with warnings.",
    ]

def test_self_include_is_skipped_with_a_warning(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "Output.md", "order": ["Output", "chapters/One"]}),
        "Output.md": "# Existing Output",
        "chapters/One.md": "# One\nIntro.",
    })

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.target.skipped_self_includes == ("Output.md",)
    assert read(ctx, "Output.md") == "## One\nIntro.\n"
    assert notice.messages[0].startswith("⚠️ [Recipe] I skipped one step to avoid a loop.")
    assert outcome.status is Level.WARNING

def test_failed_target_is_left_out_of_the_aggregate(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Bad.md": note({"type": "booker-recipe", "output": "dist/bad.md", "order": ["Ghost"]}),
        "Good.md": note({"type": "booker-recipe", "output": "dist/good.md", "order": ["chapters/One"]}),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": ["Bad", "Good"],
            "aggregate_output": "dist/all.md",
            "build_stop_on_error": False,
            "build_continue_on_missing": False,
        }),
        "chapters/One.md": "# One\nGood content.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert [t.success for t in outcome.result.targets] == [False, True]
    assert not exists(ctx, "dist/bad.md")
    assert read(ctx, "dist/good.md") == "## One\nGood content.\n"
    assert read(ctx, "dist/all.md") == "## good\n\n### One\nGood content.\n"
    assert notice.messages[-1] == "❌ [Bundle] Completed with errors (✅1 ⚠️0 ❌1)"
    assert outcome.status is Level.ERROR

def test_stop_on_error_skips_remaining_targets(make_booker, note) -> None:
    ctx, _ = make_booker({
        "Bad.md": note({"type": "booker-recipe", "output": "dist/bad.md", "order": ["Ghost"]}),
        "Good.md": note({"type": "booker-recipe", "output": "dist/good.md", "order": ["chapters/One"]}),
        "Bundle.md": note({"type": "booker-bundle", "targets": ["Bad", "Good"], "aggregate_output": "dist/all.md"}),
        "chapters/One.md": "# One\nGood content.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert len(outcome.result.targets) == 1
    assert outcome.result.failures == 1
    assert not exists(ctx, "dist/good.md")
    assert not exists(ctx, "dist/all.md")
    assert outcome.artifact is None

def test_missing_links_fail_a_target_unless_tolerated(make_booker, note) -> None:
    files = {
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One", "Ghost"]}),
        "chapters/One.md": "# One\nText.",
        "Strict.md": note({"type": "booker-bundle", "targets": ["Recipe"], "aggregate_output": "dist/strict.md"}),
        "Lenient.md": note({
            "type": "booker-bundle",
            "targets": ["Recipe"],
            "aggregate_output": "dist/lenient.md",
            "build_options": {"continue_on_missing": True},
        }),
    }
    ctx, notice = make_booker(files)

    strict = ctx.build_runner.build_current_file("Strict.md")
    lenient = ctx.build_runner.build_current_file("Lenient.md")

    assert strict.status is Level.ERROR
    assert not exists(ctx, "dist/strict.md")
    assert lenient.status is Level.WARNING
    assert exists(ctx, "dist/lenient.md")
    assert lenient.result.missing_total == 1
    assert "⚠️ [Lenient] Completed with warnings (✅0 ⚠️1 ❌0)" in notice.messages

def test_unresolved_target_is_reported_under_the_bundle(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Bundle.md": note({"type": "booker-bundle", "targets": ["Ghost"], "aggregate_output": "dist/all.md"}),
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert notice.messages[1].startswith("❌ [Bundle] I couldn’t find the note ‘Ghost’.")
    assert notice.messages[-1] == "❌ [Bundle] Completed with errors (✅0 ⚠️0 ❌1)"
    assert outcome.artifact is None
    assert not exists(ctx, "dist/all.md")

def test_bundle_without_aggregate_is_an_error(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "Bundle.md": note({"type": "booker-bundle", "targets": ["Recipe"]}),
        "chapters/One.md": "# One\nText.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert outcome.status is Level.ERROR
    assert exists(ctx, "dist/one.md")
    assert notice.messages[-1].startswith("❌ [Bundle] The bundle ‘Bundle’ has no final output.")

def test_aggregate_output_conflict(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "Bundle.md": note({"type": "booker-bundle", "targets": ["Recipe"], "aggregate_output": "dist/one.md"}),
        "chapters/One.md": "# One\nText.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert outcome.status is Level.ERROR
    assert notice.messages[-1].startswith("❌ [Bundle] This bundle’s final output conflicts with one of its targets.")
    assert read(ctx, "dist/one.md") == "## One\nText.\n"

def test_bundle_dry_run_writes_nothing(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": ["Recipe"],
            "aggregate_output": "dist/all.md",
            "build_dry_run": True,
        }),
        "chapters/One.md": "# One\nText.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert not exists(ctx, "dist/one.md")
    assert not exists(ctx, "dist/all.md")
    assert outcome.artifact.content == "## one\n\n### One\nText.\n"
    assert "✅ [Recipe] Dry run finished; dist/one.md was not written." in notice.messages

def test_run_level_dry_run_overrides_notes(make_booker, note) -> None:
    ctx, _ = make_booker(
        {
            "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
            "chapters/One.md": "# One\nText.",
        },
        dry_run=True,
    )

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.SUCCESS
    assert not exists(ctx, "dist/one.md")

def test_summary_notice_can_be_silenced(make_booker, note) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "Bundle.md": note({
            "type": "booker-bundle",
            "targets": ["Recipe"],
            "aggregate_output": "dist/all.md",
            "build_summary_notice": False,
        }),
        "chapters/One.md": "# One\nText.",
    })

    outcome = ctx.build_runner.build_current_file("Bundle.md")

    assert outcome.status is Level.SUCCESS
    assert not any("Completed" in m for m in notice.messages)

def test_unexpected_errors_become_a_generic_notice(make_booker, note, monkeypatch) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/One"]}),
        "chapters/One.md": "# One\nText.",
    })

    def fail(path, content):
        raise OSError("disk full")

    monkeypatch.setattr(ctx.compiler, "write_output", fail)

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.ERROR
    assert notice.messages == [
        "❌ [Recipe] Something went wrong while generating.\nCheck the log for details."
    ]

def test_non_utf8_sources_are_skipped_as_missing(make_booker, note, vault_root, caplog) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({
            "type": "booker-recipe",
            "output": "dist/one.md",
            "order": ["chapters/Good", "chapters/Bin"],
        }),
        "chapters/Good.md": "# Good\nText.",
    })
    (vault_root / "chapters" / "Bin.md").write_bytes(b"\xff\xfe\xfa")

    with caplog.at_level(logging.ERROR, logger="booker"):
        outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.WARNING
    assert outcome.target.resolved_count == 1
    assert outcome.target.missing_links == ("chapters/Bin",)
    assert read(ctx, "dist/one.md") == "## Good\nText.\n"
    assert notice.messages == [
        "⚠️ [Recipe] I couldn’t find 1 note(s): chapters/Bin.",
        "⚠️ [Recipe] Generation completed with warnings.",
    ]
    assert "Non-UTF8 rejected: chapters/Bin.md" in caplog.text

def test_recipe_with_only_non_utf8_sources_fails(make_booker, note, vault_root) -> None:
    ctx, notice = make_booker({
        "Recipe.md": note({"type": "booker-recipe", "output": "dist/one.md", "order": ["chapters/Bin"]}),
    })
    (vault_root / "chapters").mkdir()
    (vault_root / "chapters" / "Bin.md").write_bytes(b"\xff\xfe\xfa")

    outcome = ctx.build_runner.build_current_file("Recipe.md")

    assert outcome.status is Level.ERROR
    assert not exists(ctx, "dist/one.md")
    assert notice.messages[0].startswith("❌ [Recipe] None of the notes in `order` could be found.")
