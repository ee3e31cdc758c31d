"""
User-facing bot copy (HTML parse mode).
"""

WELCOME = """Hi! 🤍
I'm Lyutik, a little dog and the main helper of {channel_ref}.
Want the guide with the TOP-20 hand-checked hotels, no ads?
Tap below and grab your gift 👇"""

SUBSCRIBE_FIRST = """Great! 🎁
To get the guide, subscribe to the channel:
👉 {channel_link}
Once subscribed, tap the button below."""

CHECKING = "Checking your subscription… one second ⏳"

SUBSCRIBED = """Awesome! ✅
You're subscribed, here is the promised gift 🎁"""

NOT_SUBSCRIBED = """Looks like the subscription wasn't found 😕
Subscribe to the channel and tap «I'm subscribed»."""

GUIDE_CAPTION = "Your guide with the TOP-20 hotels. Happy planning ✈️"

AFTER_GUIDE = """Here is your guide, enjoy 😍

Want more? Tap «Pick a tour for me» and you'll get options picked personally for your request!"""

ECHO = "You wrote: {text}"

# Button labels
BUTTON_GET_GUIDE = "Get the guide"
BUTTON_SUBSCRIBE = "Subscribe"
BUTTON_SUBSCRIBED = "I'm subscribed"
BUTTON_PICK_TOUR = "Pick a tour for me"
