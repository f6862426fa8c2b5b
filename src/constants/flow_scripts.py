"""
Fixed outbound script lines and the phrase lists used for intent matching.
"""

# Link markers
OFFER_DOC_LINK = "[OFFER DOC LINK]"
PAYMENT_LINK = "https://link.fastpaydirect.com/payment-link/67890327cd7a105351d622d1"
BOOKING_LINK = "https://calendly.com/marketingwithamanda/the-profit-accelerator-call"
INTAKE_LINK = "[INTAKE LINK]"

DEFAULT_TOPIC = "getting clients"

# Initial DMs, keyed by entry type
PROFILE_ENGAGER_DM = (
    "Hey {display_name}, saw you on my post about {topic}.\n"
    "There's a new way coaches are using Facebook to get clients consistently.\n"
    "Should I send you a quick overview?"
)
GROUP_MEMBER_DM = (
    "Hey {display_name}, I thought of you.\n"
    "I am doing a 7-Day Gameplan for 12 coaches this month to help them get consistent clients "
    "from Facebook (without ads or complicated tech).\n"
    "Should I share the details?"
)
EVENT_ATTENDEE_DM = (
    "Hey {display_name}, thanks for joining Peaceful Launch.\n"
    "If you want a quick custom plan for your business (and support while you set it up)\n"
    "I am doing a $250 Peaceful Clients 7 day Gameplan for 12 coaches this month\n"
    "Should I share the details?"
)

# Global intent replies
PRICE_REPLY = "It's just $250. Want me to send the details?"
SCOPE_REPLY = (
    "It's a 7-day sprint, a custom 1-1 plan + simple weekly client path + support while you set it up. "
    "Want the details?"
)
SOFT_CLOSE_REPLY = "No worries, that's cool. Want me to tag you for the next event?"

# Stage scripts
DOC_OFFER_SCRIPT = (
    "Perfect, here you go\n\n"
    f"{OFFER_DOC_LINK}\n\n"
    "If it looks like a fit, reply GAMEPLAN, and I'll send the link to grab a spot."
)
PAYMENT_LINK_SCRIPT = (
    "Awesome, here you go\n"
    f"{PAYMENT_LINK}\n"
    "After you check out, book your 1:1 on the confirmation page.\n"
    "Once it's done, let me know and I'll send your intake form + next steps."
)
BOOKING_SCRIPT = (
    "You're in, congratulations! ✅\n\n"
    f"Next step: book your call here: {BOOKING_LINK}\n\n"
    f"Then complete the intake form here: {INTAKE_LINK} (at least 24h before your call)."
)

# Phrase lists, matched as lowercase substrings
PRICE_PHRASES = ("how much", "price", "cost")
SCOPE_PHRASES = ("what do i get", "what is it", "what does it include")
DECLINE_PHRASES = ("not now", "not interested", "no thanks")
GAMEPLAN_KEYWORD = "gameplan"
PAYMENT_CONFIRMATION_PHRASES = ("paid", "done", "completed", "purchased")
POSITIVE_PHRASES = (
    "yes", "yeah", "yep", "yup", "sure", "ok", "okay", "alright",
    "sounds good", "interested", "please", "send", "share",
    "i want", "id like", "i would", "tell me", "show me",
    "lets do it", "go ahead", "absolutely", "definitely",
)

# Follow-ups
INITIAL_NUDGE_1 = "Hey {display_name}, just bumping this up in case it got buried. Want me to share the details?"
INITIAL_NUDGE_2 = "Hey {display_name}, still happy to send over the Gameplan details if it's useful. Just say the word."
INITIAL_CLOSE_OUT = "No stress {display_name}, I'll leave it here for now. If getting clients ever moves up the list, just message me."

DOC_NUDGE_1 = "Hey {display_name}, did you get a chance to look at the doc? Reply GAMEPLAN if it feels like a fit."
DOC_NUDGE_2 = "Hey {display_name}, spots for this month are filling up. Want me to hold one for you? Just reply GAMEPLAN."
DOC_CLOSE_OUT = "All good {display_name}, I'll close this out. If you want in on a future round, just let me know."

PAYMENT_NUDGE_1 = f"Hey {{display_name}}, here's the link again in case you need it: {PAYMENT_LINK}"
PAYMENT_NUDGE_2 = "Hey {display_name}, any questions before you grab your spot? Happy to help."
PAYMENT_CLOSE_OUT = "No worries {display_name}, I'll release your spot for now. Message me anytime if you want back in."

BOOKING_REMINDER = (
    "Hey {display_name}, quick reminder to book your call: "
    f"{BOOKING_LINK}\n"
    f"And the intake form is here: {INTAKE_LINK}"
)
