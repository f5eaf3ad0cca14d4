"""
Chat questionnaire: the fixed step table, answer routing, and the per-step
field mappings used when chat answers are turned into forms.
"""

from typing import Dict, List, Optional, Tuple

from .models import StepData

COMPLETION_STEP = 99
DONE_ANSWER = "Done"

YES_NO = ["Yes", "No"]


def _step(question: str, options: Optional[List[str]] = None,
          input_type: str = "text", next_step: Optional[int] = None) -> StepData:
    if options is not None and input_type == "text":
        input_type = "options"
    return StepData(question=question, options=options, input_type=input_type, next_step=next_step)


STEPS: Dict[int, StepData] = {
    1: _step("Welcome to our planning app! A couple of quick questions to make sure we have the right show",
             ["OK", "Hello"], next_step=2),
    2: _step("What's your name?", next_step=3),
    3: _step("Fiance's Name?", next_step=4),
    4: _step("Confirm your wedding date", input_type="date", next_step=5),
    5: _step("And location", next_step=6),
    6: _step("Great! Have you hired a wedding planner to help you?", YES_NO),
    7: _step("Great! Do you have the PDF of the timeline yet?", YES_NO),
    8: _step("Awesome! Please upload that here", ["Upload Timeline"], "upload", next_step=99),
    9: _step("When you get it, upload it here", ["Upload Timeline"], "upload", next_step=10),
    10: _step("OK, can I have the wedding planner's contact info?", next_step=99),
    11: _step("No worries, let's get this party started!", ["OK"], next_step=12),
    12: _step("Did you book ceremony audio with us?", YES_NO),
    13: _step("What time is the ceremony?", input_type="time", next_step=14),
    14: _step("Location?", next_step=16),
    15: _step("Bot skips forward", ["OK"], next_step=99),
    16: _step("Are we doing music or mics or both?", ["Just Music", "Music and Mics"]),
    17: _step("Can you tell us which songs go with each of these moments?", next_step=18),
    18: _step("Parents and grandparents entrance", next_step=19),
    19: _step("Officiant and Groom", next_step=20),
    20: _step("Groomsmen", next_step=21),
    21: _step("Bridesmaids", next_step=22),
    22: _step("Processional", next_step=23),
    23: _step("Any songs during the ceremony.", YES_NO),
    24: _step("What song and when?", next_step=26),
    25: _step("What's your recessional song?", next_step=26),
    26: _step("You're doing great. Let's move on", ["OK"], next_step=27),
    27: _step("Are we doing the music for cocktail hour?", YES_NO),
    28: _step("Where is it located?", next_step=29),
    29: _step("Do you have a Spotify link for what you want during this time?",
              ["Yes", "No, we will let you pick!"]),
    30: _step("Great! Post that here", next_step=31),
    31: _step("Let's move on to the reception", ["OK"], next_step=32),
    32: _step("Are you doing grand introductions?", YES_NO),
    33: _step("Just you two or a group?", ["Just us", "Group"]),
    34: _step("Tell me exactly how you want to be introduced", next_step=35),
    35: _step("What song should we use?", next_step=36),
    36: _step("Love it. Let's keep going!", ["OK"], next_step=37),
    37: _step("Are you going right into your first dance? We recommend it.", YES_NO),
    38: _step("Perfect, What's the song?", next_step=39),
    39: _step("Play the full song?", YES_NO),
    40: _step("Fade it where?", next_step=47),
    41: _step("OK, so what's next?", ["Welcome", "Just sit down and eat"]),
    42: _step("Who's going to be doing this?", next_step=43),
    43: _step("Anyone doing a blessing?", YES_NO),
    44: _step("Who?", next_step=99),
    45: _step("Please list out the names (we recommend just first names) in the correct order here "
              "(bonus points if you phonetically spell out the tough ones)", next_step=46),
    46: _step("What song or songs should we use?", next_step=36),
    47: _step("Are you doing any parent dances after the first dance?", ["Yes", "No", "After Dinner"]),
    48: _step("Who is doing the first one?", next_step=49),
    49: _step("Song?", next_step=50),
    50: _step("Fade or play entirety?", ["Play it all", "Fade"]),
    51: _step("At what point?", next_step=52),
    52: _step("Who is doing the second dance?", next_step=53),
    53: _step("Song?", next_step=64),
    54: _step("Play the whole song or fade it?", ["Fade", "Play it all"]),
    55: _step("At what point?", next_step=56),
    56: _step("is anyone doing a welcome next?", YES_NO),
    57: _step("Who?", next_step=58),
    58: _step("A blessing?", YES_NO),
    59: _step("Who?", next_step=60),
    60: _step("Let's talk about dinner next", ["OK"], next_step=61),
    61: _step("what style of dinner are you having?", ["Buffet", "Stations", "Seated, Plated"], next_step=62),
    62: _step("Do you have a playlist in mind for dinner?", YES_NO),
    63: _step("Nice! Just put the Spotify link here.", next_step=64),
    64: _step("What's after dinner?", ["Toasts", "Parent dances"]),
    65: _step("Who is giving a toast?", next_step=66),
    66: _step("What's after the toasts?", ["Time to dance!", "Parent dances", "Cake Cutting"]),
    67: _step("Let's goooo! Paste that Spotify link here. 15 - 20 would be great!", next_step=68),
    68: _step("Take requests?", ["Yes, if they work with the flow", "Definitely Not"], next_step=69),
    69: _step("Thoughts on line dances? e.g. Electric Slide, The Wobble, Cupid Suffle",
              ["If requested", "Pass"], next_step=70),
    70: _step("Any songs or artists you can't stand?", YES_NO),
    71: _step("List them here please", next_step=86),
    72: _step("Who is up first?", next_step=73),
    73: _step("Song?", next_step=74),
    74: _step("Who is second?", next_step=75),
    75: _step("Song?", next_step=86),
    76: _step("What song are we using here?", next_step=86),
    77: _step("Who is up first?", next_step=78),
    78: _step("Song?", next_step=79),
    79: _step("Who is second?", next_step=80),
    80: _step("Song?", next_step=81),
    81: _step("What's after the parent dances?", ["Cake cutting", "Toasts", "Dancing"]),
    82: _step("Who is giving a toast?", next_step=86),
    83: _step("no problem, we will handle this! Any genres, artists, or vibe you are going for?", next_step=86),
    84: _step("How about a blessing?", YES_NO),
    85: _step("Who?", next_step=60),
    86: _step("Are there any other special moments during dancing?", YES_NO),
    87: _step("What are they?", ["Cake cutting", "Anniversary dance", "Bouquet toss"]),
    88: _step("What song?", next_step=93),
    89: _step("What song?", next_step=93),
    90: _step("What song?", next_step=91),
    91: _step("Garter toss?", next_step=92),
    92: _step("song?", next_step=93),
    93: _step("Do you have a preference for the last song of the night for all of your guests?", YES_NO),
    94: _step("What is it?", next_step=95),
    95: _step("Are doing any kind of formal exit", YES_NO),
    96: _step("What type of exit?", ["Sparklers", "Bubbles", "Glow sticks", "Something else"]),
    97: _step("Are you doing a private last dance? It's a great way to end the night as folks "
              "trickle out to the exit", YES_NO),
    98: _step("What's that song?", next_step=99),
    99: _step("This was fun! I think we have all of the info we need. Let's do one final planning "
              "call 1-2 weeks before the wedding. Grab a time here", ["Done"]),
    100: _step("Great! We always mic the officiant. Does the groom need one? We recommend this if "
               "you are reading vows to each other.", YES_NO),
    101: _step("Ok, easy. Any readers or singers?", YES_NO),
    102: _step("Ok, we will bring a handheld mic and stand for them.", ["OK"], next_step=103),
    103: _step("We will need a Spotify link or mp3 of the exact song and version they are singing.",
               next_step=17),
}

# step -> ({answer: next step}, fallback)
ROUTES: Dict[int, Tuple[Dict[str, int], int]] = {
    6: ({"Yes": 7}, 11),
    7: ({"Yes": 8}, 9),
    12: ({"Yes": 13}, 15),
    16: ({"Just Music": 17}, 100),
    23: ({"Yes": 24}, 25),
    27: ({"Yes": 28}, 99),
    29: ({"Yes": 30}, 31),
    32: ({"Yes": 33}, 99),
    33: ({"Just us": 34}, 45),
    37: ({"Yes": 38}, 41),
    39: ({"Yes": 99}, 40),
    41: ({"Welcome": 42}, 60),
    43: ({"Yes": 44}, 99),
    47: ({"Yes": 48}, 56),
    50: ({"Play it all": 56}, 51),
    54: ({"Play it all": 56}, 55),
    56: ({"Yes": 57}, 84),
    58: ({"Yes": 59}, 60),
    62: ({"Yes": 63}, 83),
    64: ({"Toasts": 65}, 77),
    66: ({"Time to dance!": 67, "Parent dances": 72}, 76),
    70: ({"Yes": 71}, 86),
    81: ({"Cake cutting": 76, "Toasts": 82}, 67),
    84: ({"Yes": 85}, 60),
    86: ({"Yes": 87}, 93),
    87: ({"Cake cutting": 88, "Anniversary dance": 89}, 90),
    93: ({"Yes": 94}, 95),
    95: ({"Yes": 96}, 97),
    96: ({"Sparklers": 99, "Bubbles": 99, "Glow sticks": 99}, 97),
    97: ({"Yes": 98}, 99),
    100: ({"Yes": 101}, 17),
    101: ({"Yes": 102}, 17),
}

PLANNING_FIELD_BY_STEP: Dict[int, str] = {
    2: "client_name",
    3: "fiance_name",
    4: "wedding_date",
    5: "wedding_location",
    10: "wedding_planner_contact",
    13: "ceremony_time",
    14: "ceremony_location",
    18: "parents_grandparents_entrance_song",
    19: "officiant_groom_song",
    20: "groomsmen_song",
    21: "bridesmaids_song",
    22: "processional_song",
    24: "ceremony_songs",
    25: "recessional_song",
    28: "cocktail_hour_location",
    30: "cocktail_hour_spotify",
    34: "introduction_text",
    35: "introduction_song",
    38: "first_dance_song",
    40: "first_dance_fade_point",
    42: "welcome_speaker",
    44: "blessing_speaker",
    45: "group_introduction_order",
    46: "group_introduction_song",
    48: "first_parent_dance_person",
    49: "first_parent_dance_song",
    51: "first_parent_dance_fade_point",
    52: "second_parent_dance_person",
    53: "second_parent_dance_song",
    55: "second_parent_dance_fade_point",
    57: "welcome_speaker_name",
    59: "blessing_speaker_name",
    61: "dinner_style",
    63: "dinner_playlist_spotify",
    65: "toast_speakers",
    67: "dancing_playlist_spotify",
    68: "take_requests",
    69: "line_dances",
    71: "do_not_play_songs",
    72: "first_parent_dance_person",
    73: "first_parent_dance_song",
    74: "second_parent_dance_person",
    75: "second_parent_dance_song",
    76: "cake_cutting_song",
    78: "first_parent_dance_person",
    79: "first_parent_dance_song",
    80: "second_parent_dance_person",
    82: "toast_speakers",
    83: "dinner_music_preferences",
    85: "blessing_speaker_name",
    88: "cake_cutting_song",
    89: "anniversary_dance_song",
    90: "bouquet_toss_song",
    91: "garter_toss_song",
    94: "last_song_preference",
    98: "private_last_dance_song",
    103: "readers_singers_song",
}

# step -> (moment group, song type)
MUSIC_IDEA_BY_STEP: Dict[int, Tuple[str, str]] = {
    18: ("ceremony", "parents_grandparents_entrance"),
    19: ("ceremony", "officiant_groom"),
    20: ("ceremony", "groomsmen"),
    21: ("ceremony", "bridesmaids"),
    22: ("ceremony", "processional"),
    24: ("ceremony", "during_ceremony"),
    25: ("ceremony", "recessional"),
    30: ("cocktail_hour", "spotify_playlist"),
    35: ("reception", "introduction"),
    38: ("reception", "first_dance"),
    46: ("reception", "group_introduction"),
    49: ("reception", "first_parent_dance"),
    53: ("reception", "second_parent_dance"),
    63: ("reception", "dinner_playlist"),
    67: ("reception", "dancing_playlist"),
    71: ("preferences", "do_not_play"),
    76: ("reception", "cake_cutting"),
    88: ("reception", "cake_cutting"),
    89: ("reception", "anniversary_dance"),
    90: ("reception", "bouquet_toss"),
    91: ("reception", "garter_toss"),
    94: ("reception", "last_song"),
    98: ("reception", "private_last_dance"),
}


def get_step_data(step: int) -> Optional[StepData]:
    """Question for a step, or None for steps outside the table."""
    return STEPS.get(step)


def get_next_step(step: int, answer: str) -> int:
    """Step that follows ``step`` given the user's answer."""
    step_data = STEPS.get(step)
    if step_data is not None and step_data.next_step:
        return step_data.next_step

    if step in ROUTES:
        branches, fallback = ROUTES[step]
        return branches.get(answer, fallback)

    return step + 1


def is_completion_answer(step: int, answer: str) -> bool:
    return step == COMPLETION_STEP and answer == DONE_ANSWER


def map_answer_to_planning_field(step: int, answer: str) -> Optional[Dict[str, str]]:
    """``{"field_name", "field_value"}`` for steps that feed the planning form."""
    field_name = PLANNING_FIELD_BY_STEP.get(step)
    if field_name is None:
        return None
    return {"field_name": field_name, "field_value": answer}


def map_answer_to_music_idea(step: int, answer: str) -> Optional[Dict[str, str]]:
    """``{"category", "type", "value"}`` for steps that name songs or playlists."""
    mapping = MUSIC_IDEA_BY_STEP.get(step)
    if mapping is None:
        return None
    category, song_type = mapping
    return {"category": category, "type": song_type, "value": answer}
