"""Fixed narrative template wrapped around the user's topic."""

# Each line keeps its trailing space; the upstream prompt is sensitive to it.
STORY_TEMPLATE_LINES = (
    "एक छोटे बच्चे के लिए एक मजेदार और रहस्यमयी कहानी बनाओ। ",
    "कहानी का विषय है: \"{topic}\". ",
    "कहानी सरल और आकर्षक हिंदी में होनी चाहिए, जैसे कोई दादा-दादी बच्चों को सुनाते हैं। ",
    "कहानी में हल्का सा रोमांच और सस्पेंस होना चाहिए ताकि बच्चा अगली पंक्ति पढ़ने के लिए उत्सुक रहे। ",
    "भाषा प्यारी, जीवंत और चित्रात्मक होनी चाहिए, ताकि बच्चा कहानी सुनते समय अपने दिमाग में चित्र बना सके। ",
    "अंत में कहानी से एक सुंदर नैतिक शिक्षा भी जरूर जोड़ना। ",
    "कहानी बहुत छोटी न हो, और न ही बहुत लंबी, बस इतनी कि बच्चा ध्यान से अंत तक सुन सके। ",
)

STORY_TEMPLATE = "\n" + "\n".join(STORY_TEMPLATE_LINES) + "\n"


def build_story_prompt(topic: str) -> str:
    """Embed topic in the Hindi bedtime-story template."""
    return STORY_TEMPLATE.replace("{topic}", topic)
