"""Create sample containers and a scene for shipcheck.

Usage: python scripts/create_fixtures.py <root_dir>

Creates entries that trigger nestcheck's same-name detection:
  - Assets/Weapon.prefab        (Weapon/Weapon, one finding)
  - Assets/Props/Chain.prefab   (A/A/A chain, two findings)
  - Assets/Props/Clean.prefab   (no findings)
  - Assets/Broken.prefab        (malformed JSON, skipped with a warning)
  - Main.scene.json             (live scene, Player/Player)
"""

from __future__ import annotations

import json
import os
import sys


def node(name: str, *children: dict) -> dict:
    return {"name": name, "children": list(children)}


FIXTURES: dict[str, dict] = {
    "Assets/Weapon.prefab": node("Weapon", node("Weapon", node("Barrel"))),
    "Assets/Props/Chain.prefab": node("A", node("A", node("A"))),
    "Assets/Props/Clean.prefab": node("Crate", node("Lid"), node("Body")),
}

SCENE = {
    "name": "Main",
    "roots": [node("Player", node("Player", node("Hand"))), node("Camera")],
}


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python create_fixtures.py <root_dir>", file=sys.stderr)
        sys.exit(1)

    root = sys.argv[1]
    if not os.path.isdir(root):
        print(f"Root does not exist: {root}", file=sys.stderr)
        sys.exit(1)

    for rel, data in FIXTURES.items():
        path = os.path.join(root, *rel.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        print(f"Created: {rel}")

    broken = os.path.join(root, "Assets", "Broken.prefab")
    with open(broken, "w", encoding="utf-8") as f:
        f.write("{not json")
    print("Created: Assets/Broken.prefab (malformed)")

    scene = os.path.join(root, "Main.scene.json")
    with open(scene, "w", encoding="utf-8") as f:
        json.dump(SCENE, f, indent=2)
    print("Created: Main.scene.json")

    print(f"\nFixtures created in: {root}")
    print(f"Set NESTCHECK_ASSET_ROOT={os.path.abspath(root)} and NESTCHECK_SCENES={os.path.abspath(scene)}")


if __name__ == "__main__":
    main()
