"""
SEO and readability scoring for editor content.

Both analyses add up independent checks whose weights are chosen so the sum
stays within 0-100; the final score is that sum as a rounded percentage.
"""

import re
from typing import List
from bs4 import BeautifulSoup
from apis.schemas.seo import SeoCheck, SeoReport

MAX_SCORE = 100
BLOCK_TAGS = ["p", "div", "li", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


def _final_score(checks: List[SeoCheck]) -> int:
    total = sum(check.score for check in checks)
    return round(total / MAX_SCORE * 100)


def html_to_text(html: str) -> str:
    """Visible text of `html`, with block elements separated by blank lines."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_after("\n\n")
    return soup.get_text()


def analyze_seo(content: str, keyword: str, title: str, description: str) -> SeoReport:
    """Score HTML `content` against a focus keyword, SEO title and meta description."""
    checks: List[SeoCheck] = []
    soup = BeautifulSoup(content or "", "html.parser")
    text = soup.get_text(" ").lower()
    keyword = (keyword or "").strip().lower()
    words = text.split()
    word_count = len(words)

    def has_keyword(value: str) -> bool:
        return bool(keyword) and keyword in value.lower()

    if has_keyword(title):
        checks.append(SeoCheck(text="Focus keyword appears in the title", status="good", score=15))
    else:
        checks.append(SeoCheck(text="Focus keyword is missing from the title", status="bad", score=0))

    if has_keyword(description):
        checks.append(SeoCheck(text="Focus keyword appears in the description", status="good", score=10))
    else:
        checks.append(SeoCheck(text="Focus keyword is missing from the description", status="bad", score=0))

    if has_keyword(" ".join(words[:100])):
        checks.append(SeoCheck(text="Focus keyword appears in the first 100 words", status="good", score=10))
    else:
        checks.append(SeoCheck(text="Focus keyword is missing from the first 100 words", status="warning", score=5))

    keyword_count = len(re.findall(re.escape(keyword), text)) if keyword else 0
    density = keyword_count / word_count * 100 if word_count else 0.0

    if 0.5 < density < 2.5:
        checks.append(SeoCheck(text=f"Keyword density is ideal ({density:.1f}%)", status="good", score=15))
    elif 0 < density <= 0.5:
        checks.append(SeoCheck(text=f"Keyword density is low ({density:.1f}%)", status="warning", score=7))
    elif 2.5 <= density < 4:
        checks.append(SeoCheck(text=f"Keyword density is slightly high ({density:.1f}%)", status="warning", score=7))
    elif density >= 4:
        checks.append(SeoCheck(text=f"Keyword density is far too high ({density:.1f}%)", status="bad", score=0))
    else:
        checks.append(SeoCheck(text="Focus keyword does not appear in the content", status="bad", score=0))

    headings = soup.find_all(["h2", "h3"])
    if headings:
        checks.append(SeoCheck(text="Subheadings are used", status="good", score=10))
        if any(has_keyword(heading.get_text()) for heading in headings):
            checks.append(SeoCheck(text="Focus keyword appears in a subheading", status="good", score=10))
        else:
            checks.append(SeoCheck(text="Focus keyword is missing from the subheadings", status="warning", score=5))
    else:
        checks.append(SeoCheck(text="No subheadings are used", status="bad", score=0))

    if word_count >= 800:
        checks.append(SeoCheck(text="Content length is excellent (800+ words)", status="good", score=10))
    elif word_count >= 500:
        checks.append(SeoCheck(text="Content length is good (500+ words)", status="good", score=7))
    elif word_count >= 300:
        checks.append(SeoCheck(text="Content length is fair (300+ words)", status="warning", score=5))
    else:
        checks.append(SeoCheck(text="Content is too short (under 300 words)", status="bad", score=2))

    images = soup.find_all("img")
    if images:
        checks.append(SeoCheck(text="Images are used", status="good", score=10))
        if all(image.get("alt") for image in images):
            checks.append(SeoCheck(text="Every image has alt text", status="good", score=5))
        else:
            checks.append(SeoCheck(text="Some images have no alt text", status="bad", score=0))
    else:
        checks.append(SeoCheck(text="No images are used", status="warning", score=3))

    if soup.find("a"):
        checks.append(SeoCheck(text="Links are used", status="good", score=5))
    else:
        checks.append(SeoCheck(text="No links are used", status="warning", score=2))

    return SeoReport(score=_final_score(checks), checks=checks)


def analyze_readability(text: str) -> SeoReport:
    """Score plain `text` (paragraphs separated by blank lines) for readability."""
    checks: List[SeoCheck] = []

    sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
    word_count = len(text.split())
    average_sentence_length = word_count / (len(sentences) or 1)

    if average_sentence_length <= 15:
        checks.append(SeoCheck(text="Average sentence length is very good", status="good", score=20))
    elif average_sentence_length <= 20:
        checks.append(SeoCheck(text="Average sentence length is good", status="good", score=15))
    elif average_sentence_length <= 25:
        checks.append(SeoCheck(text="Average sentence length is acceptable", status="warning", score=10))
    else:
        checks.append(SeoCheck(text="Sentences are too long on average", status="bad", score=5))

    paragraphs = [p for p in text.split("\n\n") if p.strip()]
    long_paragraphs = [p for p in paragraphs if len(p.split()) > 100]

    if not long_paragraphs:
        checks.append(SeoCheck(text="All paragraphs have a suitable length", status="good", score=20))
    elif len(long_paragraphs) <= len(paragraphs) * 0.2:
        checks.append(SeoCheck(text="Some paragraphs are long", status="warning", score=10))
    else:
        checks.append(SeoCheck(text="Most paragraphs are too long", status="bad", score=5))

    if len(sentences) > 20:
        checks.append(SeoCheck(text="Use subheadings to break up long content", status="warning", score=10))

    # No word-difficulty dictionary yet, so the ratio is a fixed estimate
    complex_word_ratio = 0.15
    if complex_word_ratio < 0.1:
        checks.append(SeoCheck(text="Share of difficult words is low", status="good", score=20))
    elif complex_word_ratio < 0.15:
        checks.append(SeoCheck(text="Share of difficult words is acceptable", status="good", score=15))
    elif complex_word_ratio < 0.2:
        checks.append(SeoCheck(text="Share of difficult words is moderate", status="warning", score=10))
    else:
        checks.append(SeoCheck(text="Share of difficult words is high", status="bad", score=5))

    checks.append(SeoCheck(text="Prefer the active voice over the passive voice", status="warning", score=10))

    return SeoReport(score=_final_score(checks), checks=checks)
