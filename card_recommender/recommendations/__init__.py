"""
Recommendation engine: values, scores, explains and ranks catalog cards for
one spending profile.

Modules
-------
point_valuation : IssuerValuation table + valuate() + effective_point_value().
rewards         : category_breakdown() + annual_rewards(), cap-aware.
welcome_bonus   : BonusRule tuple + welcome_value() — never raises.
scorer          : ScoreComponents dataclass + score_components() + score().
advisor         : risks() + tips() + build_reasoning() — explanation text.
ranker          : evaluate_card() + rank_cards() + recommend().

Everything except ``ranker.recommend`` is pure: no DB, network or file I/O.
"""
