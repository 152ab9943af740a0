import pytest

from ticket.codes import derive_area_acronym, derive_unit_code, mask_cpf, normalize_label


def test_normalize_label_strips_accents():
    assert normalize_label("Mané Mercado — Águas Claras") == "mane mercado — aguas claras"


@pytest.mark.parametrize(
    "label,code",
    [
        ("Mané Mercado — Águas Claras", "MMAC"),
        ("Mané Mercado — Arena Brasília", "MMAR"),
        ("Mané Mercado São Paulo", "MMSP"),
        ("MANE MERCADO aguas   claras", "MMAC"),
    ],
)
def test_known_venues_map_to_fixed_codes(label, code):
    assert derive_unit_code(label) == code


def test_other_brand_venues_use_last_word_suffix():
    assert derive_unit_code("Mané Mercado Lago Sul") == "MMSU"


def test_unknown_venue_uses_accent_free_slug():
    assert derive_unit_code("Bar do Zé") == "BARD"
    assert derive_unit_code("Ótimo Bar") == "OTIM"


def test_arena_needs_whole_word():
    assert derive_unit_code("Mané Mercado Arenal Norte") == "MMNO"
    assert derive_unit_code("Mané Mercado Marena") == "MMMA"


def test_empty_unit_label_renders_placeholder():
    assert derive_unit_code("") == "—"
    assert derive_unit_code(None) == "—"


@pytest.mark.parametrize(
    "label,acronym",
    [
        ("Varanda", "VAR"),
        ("Salão Principal", "SP"),
        ("Área Externa Coberta", "AEC"),
        ("Deck - Piscina", "DP"),
        ("Mezanino — Bar Central Norte", "MBC"),
        ("", "—"),
        (None, "—"),
    ],
)
def test_area_acronyms(label, acronym):
    assert derive_area_acronym(label) == acronym


def test_cpf_mask_keeps_first_three_and_last_two_digits():
    assert mask_cpf("12345678901") == "123.***.***-01"
    assert mask_cpf("123.456.789-01") == "123.***.***-01"


@pytest.mark.parametrize("value", ["", None, "1234567890", "123456789012", "abc"])
def test_cpf_mask_never_renders_partial_values(value):
    assert mask_cpf(value) == "—"
