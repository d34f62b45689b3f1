"""Basic usage example for Citator."""
import tempfile
from pathlib import Path

from citator import Citator, Config, TagRenamePair

CHAPTER = """# Mechanics

$$F = ma \\tag{newton}$$

## Energy

$$E = \\frac{1}{2} m v^2$$

$$
U = mgh
$$

Newton's law $\\ref{eq:newton}$ leads to the kinetic energy.

![[trajectory.png|title:Projectile path]]
"""

SUMMARY = """# Summary

The chapter starts from $\\ref{eq:1^newton}$.

[^1]: [[chapter1]]
"""


def main():
    with tempfile.TemporaryDirectory() as vault_dir:
        vault = Path(vault_dir)
        (vault / "chapter1.md").write_text(CHAPTER, encoding="utf-8")
        (vault / "summary.md").write_text(SUMMARY, encoding="utf-8")

        print("Initializing Citator...")
        citator = Citator(vault, config=Config(auto_number_depth=3))

        # Example 1: Number equations and update citations vault-wide
        print("\n=== Example 1: Auto-number equations ===")
        result, renamed = citator.auto_number_file("chapter1.md")
        for old, new in result.tag_mapping.items():
            print(f"  {old} -> {new}")
        if renamed:
            print(f"  Citations changed in {renamed.total_files_changed} file(s)")
        print((vault / "summary.md").read_text(encoding="utf-8"))

        # Example 2: Number figures
        print("\n=== Example 2: Auto-number figures ===")
        citator.auto_number_file("chapter1.md", kind="figure")
        print((vault / "chapter1.md").read_text(encoding="utf-8"))

        # Example 3: Rename a tag by hand
        print("\n=== Example 3: Rename a tag ===")
        pairs = [TagRenamePair("1.1", "N1")]
        if citator.check_repeated_tags("chapter1.md", pairs):
            print("  N1 is already cited, skipping")
        else:
            citator.rename_tags("chapter1.md", pairs)
            for citation in citator.list_citations("summary.md"):
                print(f"  line {citation.line + 1}: {citation.full_match}")

        # Example 4: Export printable HTML
        print("\n=== Example 4: Export HTML ===")
        output = citator.export_html("chapter1.md", str(vault / "chapter1.html"))
        print(f"  Exported {output}")


if __name__ == "__main__":
    main()
