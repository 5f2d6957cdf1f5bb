import unittest

from skafeed.classification.ska_classifier import (
    ACCEPT_RULES,
    CONTEXT_RULES,
    REJECT_RULES,
    SkaClassifier,
    is_ska_related,
)


class TestSkaClassifier(unittest.TestCase):
    def test_accept_rules_match_high_confidence_terms(self):
        self.assertTrue(is_ska_related("Third wave ska still slaps"))
        self.assertTrue(is_ska_related("Saw Reel Big Fish last night"))
        self.assertTrue(is_ska_related("pure rocksteady vibes this morning"))
        self.assertTrue(is_ska_related("new mixtape #ska"))

    def test_accept_wins_over_reject(self):
        # Swedish modal shape plus a high-confidence term
        text = "Jag ska lyssna på ska-punk ikväll"
        self.assertTrue(is_ska_related(text))
        self.assertEqual(SkaClassifier().explain(text), (True, "ska-punk"))

    def test_swedish_modal_ska_is_rejected(self):
        self.assertFalse(is_ska_related("Jag ska gå till affären"))
        self.assertFalse(is_ska_related("Det ska bli kul i helgen"))
        self.assertFalse(is_ska_related("vi ska spela fotboll, kommer du?"))

    def test_swedish_shape_beats_music_context(self):
        self.assertFalse(is_ska_related("Vi ska se ett band på lördag"))

    def test_polska_is_rejected(self):
        self.assertFalse(is_ska_related("Dancing a polska with the band"))

    def test_standalone_ska_needs_context(self):
        self.assertFalse(is_ska_related("ska"))
        self.assertTrue(is_ska_related("That new ska album is on repeat"))
        self.assertTrue(is_ska_related("Honestly I love ska"))

    def test_two_tone_and_rude_boy_need_music_context(self):
        self.assertFalse(is_ska_related("two tone shoes on sale"))
        self.assertTrue(is_ska_related("two tone records from Coventry"))
        self.assertFalse(is_ska_related("what a rude boy at the bus stop"))
        self.assertTrue(is_ska_related("rude boy song stuck in my head"))

    def test_unrelated_and_malformed_input(self):
        self.assertFalse(is_ska_related("Lovely weather for a walk"))
        self.assertFalse(is_ska_related(""))
        self.assertFalse(is_ska_related("   "))
        self.assertFalse(is_ska_related(None))
        self.assertFalse(is_ska_related(12345))
        self.assertFalse(is_ska_related({"text": "ska-punk"}))

    def test_classification_is_deterministic(self):
        samples = ["ska band tonight", "Jag ska sova", "Madness on the radio", "nothing here"]
        first = [is_ska_related(s) for s in samples]
        second = [is_ska_related(s) for s in samples]
        self.assertEqual(first, second)

    def test_explain_reports_deciding_rule(self):
        clf = SkaClassifier()
        self.assertEqual(clf.explain("ska gig tonight"), (True, "ska+music"))
        self.assertEqual(clf.explain("Jag ska jobba"), (False, "swedish:ska-infinitive"))
        self.assertEqual(clf.explain("plain text"), (False, None))

    def test_rule_tiers_can_be_reordered_independently(self):
        only_context = SkaClassifier(accept=(), reject=(), contextual=CONTEXT_RULES)
        self.assertFalse(only_context.classify("Reel Big Fish"))
        no_reject = SkaClassifier(accept=ACCEPT_RULES, reject=(), contextual=CONTEXT_RULES)
        self.assertTrue(no_reject.classify("Vi ska se ett band"))
        self.assertTrue(REJECT_RULES)


if __name__ == "__main__":
    unittest.main()
