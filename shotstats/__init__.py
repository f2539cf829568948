"""
Shot-event analysis for basketball shot charts.

The pipeline turns a raw shot CSV into a processed folder:
  data/processed/<name>/
    shots.csv.gz
    meta.json

and exposes descriptive tests, court charts and spatial statistics on top of
the processed table.
"""
