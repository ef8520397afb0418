"""
Tests for organization-name extraction from snippets and page text.
"""

from placementwatch.sources.extract import (
    clean_organization,
    extract_affiliations,
    extract_labeled_practices,
    extract_organizations,
    extract_parent_companies,
    extract_practice_names,
)


class TestPracticeNames:
    """Test suffix-anchored practice names."""

    def test_name_with_suffix(self):
        """A capitalized name ending in an eye-care suffix is found."""
        text = "Dr. Jane Smith is an optometrist at Abba Eye Care in Rockford, IL."
        assert extract_practice_names(text) == ["Abba Eye Care"]

    def test_noise_words_trimmed(self):
        """Leading call-to-action words are not part of the name."""
        text = "Welcome to Cutarelli Vision. Visit Rockford Family Eye Care or Belvidere Eye Center today."
        assert extract_practice_names(text) == ["Cutarelli Vision", "Rockford Family Eye Care", "Belvidere Eye Center"]

    def test_generic_names_dropped(self):
        """Names without distinguishing words are not returned."""
        assert extract_practice_names("Our Family Eye Care team") == []

    def test_empty(self):
        """No text, no names."""
        assert extract_practice_names(None) == []
        assert extract_practice_names("") == []


class TestPatterns:
    """Test affiliation, label and parent patterns."""

    def test_affiliation(self):
        """"practices at" introduces an employer."""
        assert extract_affiliations("He practices at Cutarelli Vision | Accepting new patients") == ["Cutarelli Vision"]

    def test_labeled(self):
        """"Office:" labels carry the practice."""
        assert extract_labeled_practices("Office: Cutarelli Vision | Rockford, IL") == ["Cutarelli Vision"]

    def test_parent(self):
        """"part of" and "owned by" name the parent."""
        assert extract_parent_companies("Cutarelli Vision is now part of AEG Vision, a partnership") == ["AEG Vision"]
        assert extract_parent_companies("Abba Eye Care is owned by EyeSouth Partners.") == ["EyeSouth Partners"]

    def test_organizations_deduplicated(self):
        """The combined extractor returns each organization once."""
        text = "Dr. Smith works at Abba Eye Care | Practice: Abba Eye Care"
        assert extract_organizations(text) == ["Abba Eye Care"]

    def test_clean_organization(self):
        """Punctuation, filler and dangling connectors are trimmed."""
        assert clean_organization(" the Abba Eye Care of. ") == "Abba Eye Care"
