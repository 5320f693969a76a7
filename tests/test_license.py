"""Tests for the license classifier."""

import re

import pytest

from elisp_harvester.parsers.license import (
    IDENTIFIER_RE,
    LICENSE_ALIASES,
    LICENSE_RULES,
    classify_body,
    classify_license,
    normalize_license,
)

GPL3_BOILERPLATE = """
;; This program is free software; you can redistribute it and/or modify
;; it under the terms of the GNU General Public License as published by
;; the Free Software Foundation, either version 3 of the License, or
;; (at your option) any later version.
"""

GPL2_BOILERPLATE = """
;; This file is free software; you can redistribute it and/or modify
;; it under the terms of the GNU General Public License as published by
;; the Free Software Foundation; either version 2, or (at your option)
;; any later version.
"""

LGPL_BOILERPLATE = """
;; This library is free software; you can redistribute it and/or
;; modify it under the terms of the GNU Lesser General Public
;; License as published by the Free Software Foundation; either
;; version 2.1 of the License, or (at your option) any later version.
"""

MIT_BOILERPLATE = """
;; Permission is hereby granted, free of charge, to any person obtaining
;; a copy of this software and associated documentation files.
"""


# ═══════════════════════════════════════════
# Body Text Rules
# ═══════════════════════════════════════════


class TestBodyRules:
    def test_gpl3(self):
        assert classify_license(None, GPL3_BOILERPLATE) == "GPL-3"

    def test_gpl2(self):
        assert classify_license(None, GPL2_BOILERPLATE) == "GPL-2"

    def test_lgpl_before_gpl(self):
        assert classify_license(None, LGPL_BOILERPLATE) == "LGPL-2.1"

    def test_mit(self):
        assert classify_license(None, MIT_BOILERPLATE) == "MIT"

    def test_as_is(self):
        body = ";; Copyright (C) 2001 Jane Doe\n;; This file is provided as-is, without warranty.\n"
        assert classify_license(None, body) == "as-is"

    def test_public_domain(self):
        body = ";; This file has been placed in the public domain.\n"
        assert classify_license(None, body) == "public-domain"

    def test_bare_gpl_fallback(self):
        body = ";; Released under the GPL.\n"
        assert classify_license(None, body) == "GPL"

    def test_version_specific_gpl_precedes_bare_gpl(self):
        assert classify_license(None, ";; Licensed under GPL v2.\n") == "GPL-2"

    def test_no_license(self):
        assert classify_license(None, ";; Just a file.\n") is None
        assert classify_license(None, None) is None

    def test_first_listed_rule_wins(self):
        rules = (
            ("narrow", re.compile(r"free\s+software", re.I)),
            ("broad", re.compile(r"software", re.I)),
        )
        assert classify_body("this is free software", rules) == "narrow"
        reversed_rules = tuple(reversed(rules))
        assert classify_body("this is free software", reversed_rules) == "broad"

    def test_every_rule_matches_its_own_example(self):
        examples = {
            "AGPL-3": "GNU Affero General Public License, either version 3",
            "Apache-2.0": "Apache License, Version 2.0",
            "WTFPL": "Do What The Fuck You Want To Public License",
            "Unlicense": "This is free and unencumbered software released into the public domain",
        }
        for identifier, text in examples.items():
            assert classify_body(text) == identifier

    def test_rule_identifiers_are_valid(self):
        for identifier, _pattern in LICENSE_RULES + LICENSE_ALIASES:
            assert IDENTIFIER_RE.match(identifier)


# ═══════════════════════════════════════════
# Header Values and Aliases
# ═══════════════════════════════════════════


class TestHeaderAliases:
    @pytest.mark.parametrize(
        "header",
        ["GPL-3", "gpl-v3", "gplv3", "GPL3", "GPLv3+", "GNU GPL v3 or later", "GPL version 3"],
    )
    def test_gpl3_spellings(self, header):
        assert classify_license(header) == "GPL-3"

    def test_header_wins_over_body(self):
        assert classify_license("MIT", GPL3_BOILERPLATE) == "MIT"

    def test_lgpl_spelling(self):
        assert classify_license("LGPLv2.1+") == "LGPL-2.1"

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("GPL-3.0-or-later", "GPL-3"),
            ("GPL-3.0-only", "GPL-3"),
            ("GPL-2.0-or-later", "GPL-2"),
            ("LGPL-2.1-only", "LGPL-2.1"),
            ("LGPL-3.0-or-later", "LGPL-3"),
            ("AGPL-3.0-or-later", "AGPL-3"),
        ],
    )
    def test_spdx_identifiers_folded(self, header, expected):
        assert classify_license(header) == expected

    def test_unknown_identifier_kept(self):
        assert classify_license("Zlib") == "Zlib"

    def test_malformed_value_dropped(self):
        assert classify_license("see the file COPYING for details") is None

    def test_blank_header_uses_body(self):
        assert classify_license("   ", GPL2_BOILERPLATE) == "GPL-2"

    def test_normalize_strips_trailing_punctuation(self):
        assert normalize_license("GPL-3.") == "GPL-3"
