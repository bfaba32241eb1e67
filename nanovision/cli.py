#!/usr/bin/env python3
"""
NanoVision - microscopy nanoparticle characterization

Usage:
    nanovision --image /path/to/sample.png --output_file results.json
    nanovision --input_dir /samples --output_file results.json --recon_dir recon/
    nanovision --screening 6 --seed 42 --output_file screening.json
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from nanovision.imaging.normalizer import DecodeError
from nanovision.models import ScreeningDecision
from nanovision.pipeline import MicroscopyAnalyzer
from nanovision.screening.generators import RandomSampleGenerator
from nanovision.screening.session import ScreeningSession

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.tif', '.tiff', '.bmp', '.gif'}


def process_image(image_path: Path, analyzer: MicroscopyAnalyzer,
                  recon_dir: Optional[Path] = None, include_image: bool = False) -> Dict:
    """Analyze a single image and return its JSON record."""
    outcome = analyzer.analyze_file(image_path)

    record = {"image_name": image_path.name}
    record.update(outcome.to_dict(include_image=include_image))

    if recon_dir is not None:
        recon_path = recon_dir / f"{image_path.stem}_reconstructed.png"
        recon_path.write_bytes(outcome.reconstructed_png)
        record["reconstructed_path"] = str(recon_path)

    return record


def collect_images(args) -> List[Path]:
    if args.image:
        return [Path(args.image)]
    input_path = Path(args.input_dir)
    return sorted(f for f in input_path.rglob('*') if f.suffix.lower() in IMAGE_EXTENSIONS)


def run_analysis(args) -> List[Dict]:
    analyzer = MicroscopyAnalyzer()
    recon_dir = Path(args.recon_dir) if args.recon_dir else None
    if recon_dir is not None:
        recon_dir.mkdir(parents=True, exist_ok=True)

    images = collect_images(args)
    print(f"Found {len(images)} images to process")

    records = []
    for idx, img_path in enumerate(images):
        print(f"[{idx + 1}/{len(images)}] Processing: {img_path.name}")
        try:
            record = process_image(img_path, analyzer, recon_dir, args.include_image)
        except DecodeError as e:
            print(f"    Error processing {img_path.name}: {e}")
            records.append({"image_name": img_path.name, "error": str(e)})
            continue

        records.append(record)
        seg = record["segmentation"]
        print(f"    Nuclei: {seg['nuclei_count']}  Dice: {seg['dice_score']:.3f}  "
              f"Decision: {record['screening_decision']}")

    return records


def run_screening(args) -> List[Dict]:
    session = ScreeningSession(RandomSampleGenerator(seed=args.seed))
    for _ in range(args.screening):
        session.add_sample()

    print("\n=== Ranking ===")
    for sample in session.ranked():
        result = sample.result
        print(f"  {sample.sample_id}: {result['weighted_score']:.1f} "
              f"({result.screening_decision.value})")
    return [s.to_dict() for s in session.samples]


def main(argv=None):
    parser = argparse.ArgumentParser(description="Characterize nanoparticles in microscopy images")
    parser.add_argument("--input_dir", type=str, help="Directory containing images to analyze")
    parser.add_argument("--image", type=str, help="Single image to analyze")
    parser.add_argument("--screening", type=int, default=0,
                        help="Generate N stand-in screening samples instead of analyzing images")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --screening")
    parser.add_argument("--output_file", type=str, default="results.json", help="Output JSON file")
    parser.add_argument("--recon_dir", type=str, help="Directory for reconstructed PNG images")
    parser.add_argument("--include_image", action="store_true",
                        help="Embed reconstructed images as data URLs in the JSON output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if not args.input_dir and not args.image and args.screening <= 0:
        parser.error("One of --input_dir, --image or --screening must be provided")

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    if args.screening > 0:
        records = run_screening(args)
    else:
        records = run_analysis(args)

    output_path = Path(args.output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(records, f, indent=2)

    print(f"\nResults saved to {output_path}")

    decisions = [r["screening_decision"] for r in records if "screening_decision" in r]
    if decisions:
        print("\n=== Summary ===")
        print(f"Total: {len(records)}  Errors: {len(records) - len(decisions)}")
        for decision in ScreeningDecision:
            print(f"{decision.value}: {decisions.count(decision.value)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
