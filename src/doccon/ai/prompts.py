"""Prompt templates for the AI capabilities."""

CLUSTERING_PROMPT = """Analyze these markdown files and group them into logical topic clusters.
Goal: Consolidate {count} files into 3-5 coherent documents.

Files to analyze:
{files}

Respond with JSON:
{{
  "clusters": [
    {{
      "name": "cluster-name",
      "description": "what this cluster represents",
      "fileIndices": [1, 3, 5],
      "suggestedFilename": "consolidated-name.md",
      "consolidationStrategy": "merge|summarize|link-only",
      "reasoning": "why these files belong together"
    }}
  ],
  "staleFiles": [2, 7],
  "standaloneFiles": [4]
}}

Strategies:
- "merge": Combine full content (complementary topics)
- "summarize": Extract key points (similar topics)
- "link-only": Keep separate but reference in README (distinct topics)"""

FILE_SUMMARY_TEMPLATE = """{index}. {name} ({words} words)
   Title: {title}
   Age: {age}
   Headers: {headings}
   Content preview: {preview}..."""

RELATED_FILES_PROMPT = """These plain text files sit next to a project's markdown documentation.
Decide which of them are documentation (notes, design write-ups, meeting logs, how-tos)
rather than machine output, data dumps or scratch files.

Files:
{files}

Respond in this exact JSON format:
{{
  "related": [1, 3],
  "reasoning": "one sentence"
}}"""
