import pytest

from docqa.retrieval import SearchResult, search
from docqa.retrieval.retriever import MAX_RESULTS


def test_single_word_query_scores_full_relevance() -> None:
    pages = ["The mitochondria is the powerhouse of the cell. It generates ATP."]

    results = search(pages, "powerhouse")

    assert results == [
        SearchResult(page=1, text="The mitochondria is the powerhouse of the cell", relevance=1.0)
    ]


def test_search_is_case_insensitive_and_keeps_original_text() -> None:
    pages = ["Quarterly REVENUE grew by twelve percent this year."]

    results = search(pages, "revenue")

    assert len(results) == 1
    assert results[0].text == "Quarterly REVENUE grew by twelve percent this year"


@pytest.mark.parametrize("query", ["", "   "])
def test_blank_query_returns_no_results(query: str) -> None:
    pages = ["Some page with plenty of sentence content in it."]

    assert search(pages, query) == []


def test_no_match_and_empty_pages_return_no_results() -> None:
    assert search(["A page about something entirely different."], "quantum") == []
    assert search([], "anything") == []
    assert search(["", "   "], "anything") == []


def test_sentences_at_or_below_twenty_characters_are_ignored() -> None:
    pages = ["Short widget line. This sentence mentions the widget clearly."]

    results = search(pages, "widget")

    assert [result.text for result in results] == ["This sentence mentions the widget clearly"]


def test_results_are_sorted_with_reading_order_tie_breaks() -> None:
    pages = [
        "Budget planning starts early. The budget covers travel costs. Nothing relevant in here.",
        "The annual budget was approved by the board.",
        "Final remarks about the budget and next steps.",
    ]

    results = search(pages, "budget")

    relevances = [result.relevance for result in results]
    assert relevances == sorted(relevances, reverse=True)
    assert [(result.page, result.text) for result in results] == [
        (1, "Budget planning starts early"),
        (1, "The budget covers travel costs"),
        (2, "The annual budget was approved by the board"),
        (3, "Final remarks about the budget and next steps"),
    ]


def test_results_are_limited_to_top_five() -> None:
    pages = [". ".join(f"Clause {index} mentions the liability cap" for index in range(4)) for _ in range(3)]

    results = search(pages, "liability")

    assert len(results) == MAX_RESULTS == 5
    assert [result.page for result in results] == [1, 1, 1, 1, 2]
    assert results[-1].text == "Clause 0 mentions the liability cap"


def test_every_relevance_is_in_unit_interval() -> None:
    pages = ["Alpha beta gamma delta epsilon. Beta gamma alone is here today."]

    for query in ("beta gamma", "alpha", "gamma delta epsilon"):
        for result in search(pages, query):
            assert 0.3 < result.relevance <= 1.0
