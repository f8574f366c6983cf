import pytest

from gtm_mcp.pagination import paginate


def test_middle_page():
    items = [f"i{n}" for n in range(1, 26)]
    result = paginate(items, 2, 10)
    assert result["items"] == [f"i{n}" for n in range(11, 21)]
    assert result["totalItems"] == 25
    assert result["totalPages"] == 3
    assert result["currentPage"] == 2


def test_last_partial_page():
    result = paginate(list(range(25)), 3, 10)
    assert result["items"] == list(range(20, 25))


def test_empty_collection():
    result = paginate([], 1, 10)
    assert result["items"] == []
    assert result["totalPages"] == 0


def test_page_past_end_is_empty():
    result = paginate(list(range(5)), 4, 2)
    assert result["items"] == []
    assert result["totalPages"] == 3
    assert result["currentPage"] == 4


@pytest.mark.parametrize("page,size", [(0, 10), (1, 0)])
def test_rejects_non_positive_arguments(page, size):
    with pytest.raises(ValueError):
        paginate([1], page, size)
