"""Context retriever — indexes the snapshot and finds code relevant to a request. Zero LLM calls."""

import logging
import os
import re

from config.defaults import DEFAULTS
from config.rules import EXPORT_NAME_RE, IMPORT_SOURCE_RE
from config.stacks import LANGUAGES
from core.chunker import FileChunker
from core.state import FileAnalysis, IntentAnalysis, RetrievedContext, SearchHit
from utils.scoring import cosine_similarity, keyword_score

logger = logging.getLogger(__name__)

_TIER = {"high": 3, "medium": 2, "low": 1}


def detect_language(path):
    return LANGUAGES.get(os.path.splitext(path)[1].lower(), "text")


def _term_confidence(line, term):
    lower_line, lower_term = line.lower(), term.lower()
    if re.search(r"\b" + re.escape(lower_term) + r"\b", lower_line):
        return "high"
    if len(lower_term) >= 5:
        return "medium"
    return "low"


def extract_snippets(content, terms, radius=None):
    """Return the lines around every case-insensitive term match."""
    radius = DEFAULTS["snippet_radius"] if radius is None else radius
    lines = content.split("\n")
    snippets = []
    for term in terms:
        needle = term.lower()
        for index, line in enumerate(lines):
            if needle in line.lower():
                snippet = "\n".join(lines[max(0, index - radius):index + radius + 1])
                if snippet not in snippets:
                    snippets.append(snippet)
    return snippets


class ContextRetriever:
    """Ranks snapshot files by keyword and, when available, embedding similarity.

    embedder: optional callable text -> vector or None. Without it the
    semantic half of the score is always 0.
    """

    name = "retriever"

    def __init__(self, chunker=None, embedder=None, threshold=None, keyword_weight=None, semantic_weight=None):
        self.chunker = chunker or FileChunker()
        self.embedder = embedder
        self.threshold = DEFAULTS["relevance_threshold"] if threshold is None else threshold
        self.keyword_weight = DEFAULTS["keyword_weight"] if keyword_weight is None else keyword_weight
        self.semantic_weight = DEFAULTS["semantic_weight"] if semantic_weight is None else semantic_weight
        self._analyses = {}
        self._embeddings = {}

    # --- Indexing ---

    def analyze_file(self, path, content):
        analysis = FileAnalysis(
            file_path=path,
            language=detect_language(path),
            content=content,
            chunks=self.chunker.chunk(content),
            dependencies=IMPORT_SOURCE_RE.findall(content),
            exports=EXPORT_NAME_RE.findall(content),
        )
        self._analyses[path] = analysis
        return analysis

    def index(self, files, streamer=None):
        """Replace the index with the given snapshot."""
        self._analyses = {}
        for path, content in files.items():
            self.analyze_file(path, content)
            if streamer is not None:
                streamer.update_context_building(path)
        return list(self._analyses.values())

    def get_analysis(self, path):
        return self._analyses.get(path)

    def set_embedding(self, path, vector):
        self._embeddings[path] = list(vector)

    # --- Ranking ---

    def score_file(self, query, analysis, query_embedding=None):
        kw = keyword_score(query, analysis.file_path + " " + analysis.content)
        semantic = 0.0
        file_embedding = self._embeddings.get(analysis.file_path)
        if query_embedding is not None and file_embedding is not None:
            semantic = cosine_similarity(query_embedding, file_embedding)
        return self.keyword_weight * kw + self.semantic_weight * semantic

    def find_relevant_files(self, query, max_files=None):
        """Indexed files scoring above the threshold, best first."""
        if max_files is None:
            max_files = DEFAULTS["max_relevant_files"]
        query_embedding = self.embedder(query) if self.embedder else None
        scored = []
        for analysis in self._analyses.values():
            score = self.score_file(query, analysis, query_embedding)
            if score > self.threshold:
                scored.append((score, analysis))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [analysis for _, analysis in scored[:max_files]]

    def identify_target_file(self, query, ranked):
        """Best single file to edit: a component named in the query, else the top hit."""
        text = query.lower()
        for analysis in ranked:
            for chunk in analysis.chunks:
                if chunk.type == "component" and chunk.name and chunk.name.lower() in text:
                    return analysis.file_path
        return ranked[0].file_path if ranked else None

    # --- Line search ---

    def search_lines(self, files, terms, patterns=()):
        """Line-level hits for literal terms and regex patterns, best tier first."""
        radius = DEFAULTS["search_context_lines"]
        hits = []
        seen = set()

        def add(hit):
            key = (hit.file_path, hit.line_number, hit.line)
            if key not in seen:
                seen.add(key)
                hits.append(hit)

        compiled = []
        for pattern in patterns:
            try:
                compiled.append((pattern, re.compile(pattern, re.IGNORECASE)))
            except re.error:
                logger.debug("Skipping invalid search pattern %r", pattern)

        for path, content in files.items():
            lines = content.split("\n")
            for index, line in enumerate(lines):
                before = lines[max(0, index - radius):index]
                after = lines[index + 1:index + 1 + radius]
                lower = line.lower()
                for term in terms:
                    if term and term.lower() in lower:
                        add(SearchHit(
                            file_path=path, line_number=index + 1, line=line,
                            confidence=_term_confidence(line, term), matched_term=term,
                            context_before=before, context_after=after,
                        ))
                for source, regex in compiled:
                    if regex.search(line):
                        add(SearchHit(
                            file_path=path, line_number=index + 1, line=line,
                            confidence="high", matched_pattern=source,
                            context_before=before, context_after=after,
                        ))

        hits.sort(key=lambda h: _TIER[h.confidence], reverse=True)
        return hits

    # --- Phase entry point ---

    def retrieve(self, intent: IntentAnalysis, query, files, max_files=None):
        """Everything the planner and editor need to know about where to change."""
        if set(files) != set(self._analyses):
            self.index(files)
        ranked = self.find_relevant_files(query, max_files)

        relevant = []
        snippets = {}
        terms = [t.lower() for t in intent.search_terms]
        for path, content in files.items():
            lower = content.lower()
            if path in intent.target_files or any(t in lower for t in terms):
                relevant.append(path)
                found = extract_snippets(content, intent.search_terms)
                if found:
                    snippets[path] = found

        hits = self.search_lines(files, intent.search_terms, intent.regex_patterns)
        confidence = min(len(relevant) / max(len(intent.target_files), 1), 1.0)
        logger.info("Context search: %d relevant, %d ranked, %d hit(s)", len(relevant), len(ranked), len(hits))
        return RetrievedContext(
            relevant_files=relevant,
            ranked=ranked,
            hits=hits,
            snippets=snippets,
            suggested_target=self.identify_target_file(query, ranked),
            confidence=confidence,
        )
