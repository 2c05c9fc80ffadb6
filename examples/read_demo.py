#!/usr/bin/env python3
"""
UniPen Example: Reading a Corpus

Parses a session file that includes per-writer files, then walks the
built samples: strokes, segments and their bounding boxes.
"""

from pathlib import Path

from unipen import Keyword, build, parse

DATA = Path(__file__).parent / "data"


def main():
    print("=" * 60)
    print("UniPen Reader Example")
    print("=" * 60)

    # Layer 1: flat statement stream, includes spliced in
    statements = parse(DATA / "session.unipen", include_dir=DATA)
    files = [s.arguments[0].value for s in statements if s.keyword is Keyword.INCLUDE]
    print(f"\n[1] Decoded {len(statements)} statements from {len(files)} files")
    for name in files:
        print(f"    {name}")

    # Layer 2: the document
    document = build(statements)
    print(f"\n[2] Document {document.data_id} ({document.data_source})")
    print(f"    Channels: {' '.join(c.name for c in document.coordinate_order)}")
    print(f"    Writer: {document.writer.writer_id}, hand {document.writer.hand.name}, "
          f"age {document.writer.age}")

    print("\n[3] Samples:")
    for sample in document.component_sets:
        strokes = list(sample.strokes())
        duration = sample.coordinates[-1].time if sample.coordinates else 0.0
        print(f"\n    {sample.name}: {len(sample.coordinates)} points, "
              f"{len(strokes)} strokes, {duration:.3f}s")
        for segment, box in zip(sample.segments, sample.bounding_boxes):
            quality = segment.quality.name if segment.quality else "?"
            print(f"      {segment.hierarchy:10} {segment.label!r:6} {quality:5} "
                  f"box {box.width:.0f}x{box.height:.0f} at ({box.x_min:.0f}, {box.y_min:.0f})")


if __name__ == "__main__":
    main()
