from unittest.mock import MagicMock

import pytest
import requests

from verifai_cli.models import RelatedContent
from verifai_cli.search import (
    MAX_RELATED,
    RelatedContentFinder,
    WebSearchClient,
    build_queries,
    calculate_relevance,
    example_content,
    extract_domain,
    extract_keywords,
)


def _response(payload=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload or {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


def _session(*responses, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.side_effect = list(responses)
    return session


class StaticClient:
    def __init__(self, pages):
        self.pages = pages
        self.queries = []

    def search(self, query, max_results=5):
        self.queries.append(query)
        return self.pages.get(query, [])


def _item(url, title="t"):
    return RelatedContent(title=title, url=url, relevance=10, source=extract_domain(url))


def test_keywords_drop_stop_words_digits_and_short_words():
    text = "The climate report: climate change in 2024 is real, and climate models agree on change."
    keywords = extract_keywords(text)
    assert keywords[:2] == ["climate", "change"]
    assert "the" not in keywords
    assert "in" not in keywords
    assert not any(k.isdigit() for k in keywords)


def test_keywords_limit():
    words = " ".join(f"word{chr(97 + i)}" for i in range(20))
    assert len(extract_keywords(words)) == 8
    assert len(extract_keywords(words, limit=3)) == 3


def test_relevance_scoring():
    # 2 title hits, 1 snippet hit, phrase in title
    assert calculate_relevance("solar power", "Solar Power Today", "about solar") == 30 * 2 + 10 + 20
    assert calculate_relevance("nothing", "Other", "text") == 0
    assert calculate_relevance("a b c d", "a b c d", "a b c d") == 100


@pytest.mark.parametrize("url,domain", [
    ("https://www.snopes.com/fact-check/x", "snopes.com"),
    ("http://news.example.org/a?b=c", "news.example.org"),
    ("not a url", "fuente desconocida"),
])
def test_extract_domain(url, domain):
    assert extract_domain(url) == domain


def test_unconfigured_client_makes_no_requests():
    session = MagicMock()
    client = WebSearchClient(api_key="", engine_id="engine", session=session)
    assert client.configured is False
    assert client.search("anything") == []
    assert client.is_available() is False
    session.get.assert_not_called()


def test_search_parses_items():
    payload = {"items": [
        {"title": "Solar power facts", "link": "https://www.example.com/solar", "snippet": "solar"},
        {"title": "No link here"},
    ]}
    session = _session(_response(payload))
    client = WebSearchClient("key", "engine", timeout=2.0, session=session)

    results = client.search("solar power", 3)

    assert len(results) == 1
    assert results[0].url == "https://www.example.com/solar"
    assert results[0].source == "example.com"
    assert results[0].relevance == calculate_relevance("solar power", "Solar power facts", "solar")
    kwargs = session.get.call_args.kwargs
    assert kwargs["params"]["q"] == "solar power"
    assert kwargs["params"]["num"] == 3
    assert kwargs["params"]["cx"] == "engine"
    assert kwargs["timeout"] == 2.0


@pytest.mark.parametrize("status", [429, 403, 500])
def test_http_errors_yield_empty_results(status):
    client = WebSearchClient("key", "engine", session=_session(_response(status=status)))
    assert client.search("query") == []


def test_timeout_yields_empty_results():
    client = WebSearchClient("key", "engine", session=_session(error=requests.Timeout("slow")))
    assert client.search("query") == []
    assert client.is_available() is False


def test_is_available_with_working_backend():
    client = WebSearchClient("key", "engine", session=_session(_response({"items": []})))
    assert client.is_available() is True


def test_queries_per_content_type():
    keywords = ["alpha", "beta", "gamma", "delta"]
    assert build_queries("text", keywords)[0] == "alpha beta gamma"
    assert "fact check alpha beta" in build_queries("text", keywords)
    assert "búsqueda inversa alpha beta" in build_queries("image", keywords)
    assert "deepfake detección alpha beta" in build_queries("video", keywords)
    assert "alpha beta gamma estudio" in build_queries("document", keywords)


def test_finder_dedups_by_url_and_caps_results():
    keywords = ["alpha", "beta", "gamma"]
    queries = build_queries("text", keywords)
    pages = {
        queries[0]: [_item(f"https://a.com/{i}") for i in range(3)],
        queries[1]: [_item("https://a.com/0"), _item("https://b.com/1"), _item("https://b.com/2")],
        queries[2]: [_item(f"https://c.com/{i}") for i in range(3)],
        queries[3]: [_item(f"https://d.com/{i}") for i in range(3)],
    }
    client = StaticClient(pages)
    results = RelatedContentFinder(client).search("text", "alpha alpha alpha beta beta gamma")

    urls = [r.url for r in results]
    assert len(urls) == MAX_RELATED
    assert len(set(urls)) == len(urls)
    assert urls[:5] == ["https://a.com/0", "https://a.com/1", "https://a.com/2", "https://b.com/1", "https://b.com/2"]
    assert client.queries == queries


def test_finder_falls_back_to_examples():
    finder = RelatedContentFinder(StaticClient({}))
    results = finder.find("image", "sunset sunset beach")
    assert [r.source for r in results] == ["tineye.com", "fotoforensics.com", "sensity.ai"]
    assert results[0].title == "Verificación de imagen: sunset"


def test_examples_use_default_keyword_without_subject():
    results = example_content("video", "")
    assert results[0].title == "Verificación de video: video"
    assert all(0 <= r.relevance <= 100 for r in results)


def test_unknown_type_uses_text_examples():
    assert [r.url for r in example_content("audio", "x")] == [r.url for r in example_content("text", "x")]
