"""Centralised markup patterns for locating the embedded feature catalog."""

import re

# ==== REGION (quiz-element wrapper) ====
QUIZ_ELEMENT_STRICT = re.compile(
    r"<quiz-element[^>]*class=[\"']quiz-outer-wrapper[\"'][^>]*>([\s\S]*?)</quiz-element>",
    re.IGNORECASE,
)
QUIZ_ELEMENT_LOOSE = re.compile(
    r"<quiz-element[^>]*>([\s\S]*?)</quiz-element>",
    re.IGNORECASE,
)
QUIZ_ELEMENT_OPEN_TAG = re.compile(r"<quiz-element[^>]*>", re.IGNORECASE)

# ==== SCRIPTS ====
SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>([\s\S]*?)</script\s*>", re.IGNORECASE)
EXTERNAL_SCRIPT = re.compile(r"<script\b[^>]*\bsrc=[\"'][^\"']*[\"'][^>]*>", re.IGNORECASE)

# ==== GLOBAL ASSIGNMENTS ====
YEAR_MODELS_BINDING = "yearNameCombos"
CATALOG_BINDING = "quizFunctionData"

YEAR_MODELS_MARKER = f"window.{YEAR_MODELS_BINDING}"
YEAR_MODELS_ASSIGNMENT = re.compile(r"window\.yearNameCombos\s*=\s*\[[\s\S]*?\]")

CATALOG_ASSIGNMENT = re.compile(r"window\.quizFunctionData\s*=\s*\{")
CATALOG_EMPTY_ASSIGNMENT = re.compile(r"window\.quizFunctionData\s*=\s*\{\s*\}")
CATALOG_KEYED_ASSIGNMENT = re.compile(r"window\.quizFunctionData\s*\[")
CATALOG_SYNTHETIC_ASSIGNMENT = "\nwindow.quizFunctionData = {};\n"
