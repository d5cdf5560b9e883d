from scijournal.utils import is_valid_email, split_keywords


def test_split_keywords_trims_and_drops_blanks() -> None:
    assert split_keywords(" iot, , sensors ,") == ["iot", "sensors"]
    assert split_keywords(" , ") == []


def test_email_shape() -> None:
    assert is_valid_email("a@uni.vn")
    assert not is_valid_email("a@uni")
    assert not is_valid_email("a b@uni.vn")
