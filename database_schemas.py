# Database schema definitions

# Millisecond creation timestamps keep rows creation-ordered
NOW = "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"

POST_FLAIRS = ('food_spot', 'hidden_gem', 'travel_plan', 'question', 'review', 'tip')
EVENT_TAGS = ('festival', 'meetup', 'local_experience', 'food', 'culture', 'outdoor')
WIKI_SECTIONS = ('best_time_to_visit', 'safety', 'most_efficient_local_transport', 'question_of_the_week')
PROFILE_ROLES = ('resident', 'traveler')


def _sql_list(values):
    return ", ".join(f"'{v}'" for v in values)


USERS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        is_admin BOOLEAN DEFAULT 0,
        created_at TIMESTAMP DEFAULT {NOW}
    )
'''

CITIES_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS cities (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        country TEXT NOT NULL,
        description TEXT,
        image_url TEXT,
        created_at TIMESTAMP DEFAULT {NOW},
        UNIQUE(name, country)
    )
'''

PROFILES_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        username TEXT UNIQUE NOT NULL,
        bio TEXT,
        role TEXT NOT NULL DEFAULT 'traveler' CHECK (role IN ({_sql_list(PROFILE_ROLES)})),
        city_id TEXT,
        interests TEXT NOT NULL DEFAULT '[]', -- JSON array of strings
        score INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (id) REFERENCES users (id) ON DELETE CASCADE,
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE SET NULL
    )
'''

CITY_MEMBERS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS city_members (
        profile_id TEXT NOT NULL,
        city_id TEXT NOT NULL,
        joined_at TIMESTAMP DEFAULT {NOW},
        PRIMARY KEY (profile_id, city_id),
        FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE
    )
'''

POSTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS posts (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        author_id TEXT NOT NULL,
        city_id TEXT NOT NULL,
        flair TEXT NOT NULL CHECK (flair IN ({_sql_list(POST_FLAIRS)})),
        image_url TEXT,
        upvotes INTEGER NOT NULL DEFAULT 0 CHECK (upvotes >= 0),
        downvotes INTEGER NOT NULL DEFAULT 0 CHECK (downvotes >= 0),
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (author_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE
    )
'''

COMMENTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS comments (
        id TEXT PRIMARY KEY,
        content TEXT NOT NULL,
        author_id TEXT NOT NULL,
        post_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (author_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (post_id) REFERENCES posts (id) ON DELETE CASCADE
    )
'''

POST_VOTES_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS post_votes (
        user_id TEXT NOT NULL,
        post_id TEXT NOT NULL,
        vote_type TEXT NOT NULL CHECK (vote_type IN ('up', 'down')),
        created_at TIMESTAMP DEFAULT {NOW},
        PRIMARY KEY (user_id, post_id),
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (post_id) REFERENCES posts (id) ON DELETE CASCADE
    )
'''

EVENTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS events (
        id TEXT PRIMARY KEY,
        city_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        date TIMESTAMP NOT NULL,
        added_by TEXT NOT NULL,
        location_name TEXT,
        location_address TEXT,
        location_lat REAL,
        location_lng REAL,
        tags TEXT NOT NULL DEFAULT '[]', -- JSON array of event tags
        max_attendees INTEGER CHECK (max_attendees IS NULL OR max_attendees > 0),
        is_private BOOLEAN NOT NULL DEFAULT 0,
        image_url TEXT,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE,
        FOREIGN KEY (added_by) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

EVENT_RSVPS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS event_rsvps (
        event_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        status TEXT NOT NULL CHECK (status IN ('going', 'interested')),
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        PRIMARY KEY (event_id, user_id),
        FOREIGN KEY (event_id) REFERENCES events (id) ON DELETE CASCADE,
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

EVENT_DISCUSSIONS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS event_discussions (
        id TEXT PRIMARY KEY,
        event_id TEXT NOT NULL,
        author_id TEXT NOT NULL,
        content TEXT NOT NULL,
        parent_id TEXT,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (event_id) REFERENCES events (id) ON DELETE CASCADE,
        FOREIGN KEY (author_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (parent_id) REFERENCES event_discussions (id) ON DELETE CASCADE
    )
'''

TRAVEL_PLANS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS travel_plans (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        start_date DATE NOT NULL,
        end_date DATE NOT NULL,
        images TEXT NOT NULL DEFAULT '[]', -- JSON array of image URLs, in display order
        user_id TEXT NOT NULL,
        city_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        CONSTRAINT valid_date_range CHECK (end_date >= start_date),
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE
    )
'''

TRAVEL_PLAN_COMMENTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS travel_plan_comments (
        id TEXT PRIMARY KEY,
        content TEXT NOT NULL,
        user_id TEXT NOT NULL,
        plan_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (plan_id) REFERENCES travel_plans (id) ON DELETE CASCADE
    )
'''

TRAVEL_VLOGS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS travel_vlogs (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        video_url TEXT NOT NULL,
        thumbnail_url TEXT,
        user_id TEXT NOT NULL,
        city_id TEXT,
        like_count INTEGER NOT NULL DEFAULT 0 CHECK (like_count >= 0),
        dislike_count INTEGER NOT NULL DEFAULT 0 CHECK (dislike_count >= 0),
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE
    )
'''

VLOG_REACTIONS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS vlog_reactions (
        user_id TEXT NOT NULL,
        vlog_id TEXT NOT NULL,
        reaction_type TEXT NOT NULL CHECK (reaction_type IN ('like', 'dislike')),
        created_at TIMESTAMP DEFAULT {NOW},
        PRIMARY KEY (user_id, vlog_id),
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (vlog_id) REFERENCES travel_vlogs (id) ON DELETE CASCADE
    )
'''

VLOG_COMMENTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS vlog_comments (
        id TEXT PRIMARY KEY,
        content TEXT NOT NULL,
        user_id TEXT NOT NULL,
        vlog_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (user_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (vlog_id) REFERENCES travel_vlogs (id) ON DELETE CASCADE
    )
'''

CHATS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS chats (
        id TEXT PRIMARY KEY,
        user1_id TEXT NOT NULL,
        user2_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        CONSTRAINT different_users CHECK (user1_id <> user2_id),
        CONSTRAINT ordered_users CHECK (user1_id < user2_id),
        UNIQUE(user1_id, user2_id),
        FOREIGN KEY (user1_id) REFERENCES profiles (id) ON DELETE CASCADE,
        FOREIGN KEY (user2_id) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

MESSAGES_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        chat_id TEXT NOT NULL,
        sender_id TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (chat_id) REFERENCES chats (id) ON DELETE CASCADE,
        FOREIGN KEY (sender_id) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

COMMUNITY_WIKI_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS community_wiki (
        id TEXT PRIMARY KEY,
        city_id TEXT NOT NULL,
        section TEXT NOT NULL CHECK (section IN ({_sql_list(WIKI_SECTIONS)})),
        content TEXT NOT NULL DEFAULT '',
        poll_question TEXT,
        poll_answers TEXT, -- JSON array of choices
        poll_votes TEXT,   -- JSON object choice -> tally
        profile_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        updated_at TIMESTAMP DEFAULT {NOW},
        UNIQUE(city_id, section),
        FOREIGN KEY (city_id) REFERENCES cities (id) ON DELETE CASCADE,
        FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

SCORE_EVENTS_TABLE_SCHEMA = f'''
    CREATE TABLE IF NOT EXISTS score_events (
        id TEXT PRIMARY KEY,
        profile_id TEXT NOT NULL,
        points INTEGER NOT NULL,
        reason TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT {NOW},
        FOREIGN KEY (profile_id) REFERENCES profiles (id) ON DELETE CASCADE
    )
'''

TABLE_SCHEMAS = [
    USERS_TABLE_SCHEMA,
    CITIES_TABLE_SCHEMA,
    PROFILES_TABLE_SCHEMA,
    CITY_MEMBERS_TABLE_SCHEMA,
    POSTS_TABLE_SCHEMA,
    COMMENTS_TABLE_SCHEMA,
    POST_VOTES_TABLE_SCHEMA,
    EVENTS_TABLE_SCHEMA,
    EVENT_RSVPS_TABLE_SCHEMA,
    EVENT_DISCUSSIONS_TABLE_SCHEMA,
    TRAVEL_PLANS_TABLE_SCHEMA,
    TRAVEL_PLAN_COMMENTS_TABLE_SCHEMA,
    TRAVEL_VLOGS_TABLE_SCHEMA,
    VLOG_REACTIONS_TABLE_SCHEMA,
    VLOG_COMMENTS_TABLE_SCHEMA,
    CHATS_TABLE_SCHEMA,
    MESSAGES_TABLE_SCHEMA,
    COMMUNITY_WIKI_TABLE_SCHEMA,
    SCORE_EVENTS_TABLE_SCHEMA,
]

INDEX_SCHEMAS = [
    "CREATE INDEX IF NOT EXISTS city_members_city_id_idx ON city_members(city_id)",
    "CREATE INDEX IF NOT EXISTS posts_city_id_idx ON posts(city_id)",
    "CREATE INDEX IF NOT EXISTS comments_post_id_idx ON comments(post_id)",
    "CREATE INDEX IF NOT EXISTS post_votes_post_id_idx ON post_votes(post_id)",
    "CREATE INDEX IF NOT EXISTS events_city_id_idx ON events(city_id)",
    "CREATE INDEX IF NOT EXISTS event_rsvps_user_id_idx ON event_rsvps(user_id)",
    "CREATE INDEX IF NOT EXISTS event_discussions_event_id_idx ON event_discussions(event_id)",
    "CREATE INDEX IF NOT EXISTS event_discussions_parent_id_idx ON event_discussions(parent_id)",
    "CREATE INDEX IF NOT EXISTS travel_plans_city_id_idx ON travel_plans(city_id)",
    "CREATE INDEX IF NOT EXISTS travel_plan_comments_plan_id_idx ON travel_plan_comments(plan_id)",
    "CREATE INDEX IF NOT EXISTS travel_vlogs_city_id_idx ON travel_vlogs(city_id)",
    "CREATE INDEX IF NOT EXISTS vlog_reactions_vlog_id_idx ON vlog_reactions(vlog_id)",
    "CREATE INDEX IF NOT EXISTS vlog_comments_vlog_id_idx ON vlog_comments(vlog_id)",
    "CREATE INDEX IF NOT EXISTS chats_user2_id_idx ON chats(user2_id)",
    "CREATE INDEX IF NOT EXISTS messages_chat_id_idx ON messages(chat_id, created_at)",
    "CREATE INDEX IF NOT EXISTS score_events_profile_id_idx ON score_events(profile_id)",
]

# Counters are maintained here, in the same statement as the vote/reaction row
# change, never by callers. Decrements are floored at zero.
SCORE_EVENT_ID = "lower(hex(randomblob(16)))"

TRIGGER_SCHEMAS = [
    f'''
    CREATE TRIGGER IF NOT EXISTS post_votes_after_insert
    AFTER INSERT ON post_votes
    BEGIN
        UPDATE posts SET
            upvotes = upvotes + (NEW.vote_type = 'up'),
            downvotes = downvotes + (NEW.vote_type = 'down')
        WHERE id = NEW.post_id;
        INSERT INTO score_events (id, profile_id, points, reason)
        SELECT {SCORE_EVENT_ID}, author_id,
               CASE NEW.vote_type WHEN 'up' THEN 1 ELSE -1 END, 'post_vote'
        FROM posts WHERE id = NEW.post_id;
    END
    ''',
    f'''
    CREATE TRIGGER IF NOT EXISTS post_votes_after_update
    AFTER UPDATE OF vote_type ON post_votes
    WHEN OLD.vote_type <> NEW.vote_type
    BEGIN
        UPDATE posts SET
            upvotes = MAX(upvotes - (OLD.vote_type = 'up'), 0) + (NEW.vote_type = 'up'),
            downvotes = MAX(downvotes - (OLD.vote_type = 'down'), 0) + (NEW.vote_type = 'down')
        WHERE id = NEW.post_id;
        INSERT INTO score_events (id, profile_id, points, reason)
        SELECT {SCORE_EVENT_ID}, author_id,
               CASE NEW.vote_type WHEN 'up' THEN 2 ELSE -2 END, 'post_vote_changed'
        FROM posts WHERE id = NEW.post_id;
    END
    ''',
    f'''
    CREATE TRIGGER IF NOT EXISTS post_votes_after_delete
    AFTER DELETE ON post_votes
    BEGIN
        UPDATE posts SET
            upvotes = MAX(upvotes - (OLD.vote_type = 'up'), 0),
            downvotes = MAX(downvotes - (OLD.vote_type = 'down'), 0)
        WHERE id = OLD.post_id;
        INSERT INTO score_events (id, profile_id, points, reason)
        SELECT {SCORE_EVENT_ID}, author_id,
               CASE OLD.vote_type WHEN 'up' THEN -1 ELSE 1 END, 'post_vote_removed'
        FROM posts WHERE id = OLD.post_id;
    END
    ''',
    '''
    CREATE TRIGGER IF NOT EXISTS vlog_reactions_after_insert
    AFTER INSERT ON vlog_reactions
    BEGIN
        UPDATE travel_vlogs SET
            like_count = like_count + (NEW.reaction_type = 'like'),
            dislike_count = dislike_count + (NEW.reaction_type = 'dislike')
        WHERE id = NEW.vlog_id;
    END
    ''',
    '''
    CREATE TRIGGER IF NOT EXISTS vlog_reactions_after_update
    AFTER UPDATE OF reaction_type ON vlog_reactions
    WHEN OLD.reaction_type <> NEW.reaction_type
    BEGIN
        UPDATE travel_vlogs SET
            like_count = MAX(like_count - (OLD.reaction_type = 'like'), 0) + (NEW.reaction_type = 'like'),
            dislike_count = MAX(dislike_count - (OLD.reaction_type = 'dislike'), 0) + (NEW.reaction_type = 'dislike')
        WHERE id = NEW.vlog_id;
    END
    ''',
    '''
    CREATE TRIGGER IF NOT EXISTS vlog_reactions_after_delete
    AFTER DELETE ON vlog_reactions
    BEGIN
        UPDATE travel_vlogs SET
            like_count = MAX(like_count - (OLD.reaction_type = 'like'), 0),
            dislike_count = MAX(dislike_count - (OLD.reaction_type = 'dislike'), 0)
        WHERE id = OLD.vlog_id;
    END
    ''',
    '''
    CREATE TRIGGER IF NOT EXISTS score_events_after_insert
    AFTER INSERT ON score_events
    BEGIN
        UPDATE profiles SET score = score + NEW.points WHERE id = NEW.profile_id;
    END
    ''',
]

# Columns stored as JSON text
JSON_COLUMNS = {
    "profiles": {"interests"},
    "events": {"tags"},
    "travel_plans": {"images"},
    "community_wiki": {"poll_answers", "poll_votes"},
}
