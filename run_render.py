#!/usr/bin/env python3
"""One-off script: render a structured resume JSON file to PDF.

Usage: python run_render.py resume.json out.pdf [--multi-page] [--profile compact]
"""

import argparse
import json
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from resume_engine.schemas.resume import StructuredResume
from resume_engine.services.resume_builder import render_resume_pdf
from resume_engine.services.resume_renderer import get_size_profile

logging.basicConfig(level=logging.INFO, format="%(message)s")


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("resume_json")
    parser.add_argument("output_pdf")
    parser.add_argument("--multi-page", action="store_true")
    parser.add_argument("--profile", default=None)
    args = parser.parse_args()

    with open(args.resume_json, encoding="utf-8") as f:
        doc = StructuredResume(**json.load(f))

    profile = get_size_profile(args.profile) if args.profile else None
    result = render_resume_pdf(doc, single_page=not args.multi_page, profile=profile)

    with open(args.output_pdf, "wb") as f:
        f.write(result.pdf_bytes)

    print("=" * 70)
    print("RESULT")
    print("=" * 70)
    print(f"  profile:    {result.profile}")
    print(f"  pages:      {result.page_count}")
    print(f"  truncated:  {result.truncated}")
    size_kb = os.path.getsize(args.output_pdf) / 1024
    print(f"\nOutput saved: {args.output_pdf} ({size_kb:.1f} KB)")


if __name__ == "__main__":
    main()
