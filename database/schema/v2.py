"""Schema v2 - Campaign statistics and conversations.

This version adds:
- total_raised / supporter_count on campaigns, maintained by memo ingestion
- amount on memos (octas)
- conversations with an embedded JSONB message history, keyed by the
  canonical thread key (sorted participants + campaign ledger id)
"""

schema = {
    'version': 2,
    'tables': [
        {
            'name': 'users',
            'columns': [
                {'name': 'id', 'type': 'UUID', 'primary_key': True, 'default': 'gen_random_uuid()'},
                {'name': 'address', 'type': 'TEXT', 'nullable': False, 'unique': True},
                {'name': 'nickname', 'type': 'TEXT', 'nullable': False, 'default': "''"},
                {'name': 'avatar', 'type': 'TEXT'},
                {'name': 'bio', 'type': 'TEXT', 'nullable': False, 'default': "''"},
                {'name': 'followers', 'type': 'INT8', 'nullable': False, 'default': '0'},
                {'name': 'following', 'type': 'INT8', 'nullable': False, 'default': '0'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'campaigns',
            'columns': [
                {'name': 'id', 'type': 'UUID', 'primary_key': True, 'default': 'gen_random_uuid()'},
                {'name': 'type', 'type': 'TEXT', 'nullable': False},
                {'name': 'name', 'type': 'TEXT', 'nullable': False},
                {'name': 'description', 'type': 'TEXT', 'nullable': False},
                {'name': 'goal', 'type': 'DECIMAL(24,8)'},
                {'name': 'price', 'type': 'DECIMAL(24,8)'},
                {'name': 'image', 'type': 'TEXT'},
                {'name': 'contract_id', 'type': 'INT8'},
                {'name': 'transaction_hash', 'type': 'TEXT'},
                {'name': 'is_active', 'type': 'BOOLEAN', 'nullable': False, 'default': 'true'},
                {'name': 'total_raised', 'type': 'DECIMAL(24,8)', 'nullable': False, 'default': '0'},
                {'name': 'supporter_count', 'type': 'INT8', 'nullable': False, 'default': '0'},
                {'name': 'created_by', 'type': 'UUID', 'nullable': False},
                {'name': 'creator_address', 'type': 'TEXT', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['created_by'], 'references': 'users(id)'}
            ],
            'indexes': [
                {'name': 'idx_campaigns_creator', 'columns': ['creator_address', 'created_at']},
                {'name': 'idx_campaigns_contract', 'columns': ['contract_id', 'creator_address']},
                {'name': 'idx_campaigns_created', 'columns': ['created_at DESC']}
            ]
        },
        {
            'name': 'memos',
            'columns': [
                {'name': 'id', 'type': 'UUID', 'primary_key': True, 'default': 'gen_random_uuid()'},
                {'name': 'transaction_hash', 'type': 'TEXT', 'nullable': False, 'unique': True},
                {'name': 'campaign_id', 'type': 'INT8', 'nullable': False},
                {'name': 'creator_address', 'type': 'TEXT', 'nullable': False},
                {'name': 'user_address', 'type': 'TEXT', 'nullable': False},
                {'name': 'type', 'type': 'TEXT', 'nullable': False},
                {'name': 'memo', 'type': 'TEXT', 'nullable': False},
                {'name': 'amount', 'type': 'INT8', 'nullable': False, 'default': '0'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_memos_campaign', 'columns': ['campaign_id', 'creator_address', 'created_at DESC']},
                {'name': 'idx_memos_supporter', 'columns': ['campaign_id', 'creator_address', 'user_address']}
            ]
        },
        {
            'name': 'conversations',
            'columns': [
                {'name': 'thread_key', 'type': 'TEXT', 'primary_key': True},
                {'name': 'participant_a', 'type': 'TEXT', 'nullable': False},
                {'name': 'participant_b', 'type': 'TEXT', 'nullable': False},
                {'name': 'campaign_id', 'type': 'INT8'},
                {'name': 'messages', 'type': 'JSONB', 'nullable': False, 'default': "'[]'"},
                {'name': 'last_message_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_conversations_a', 'columns': ['participant_a', 'last_message_at DESC']},
                {'name': 'idx_conversations_b', 'columns': ['participant_b', 'last_message_at DESC']}
            ]
        }
    ],
    'migrations': [
        '''
        ALTER TABLE campaigns ADD COLUMN IF NOT EXISTS total_raised DECIMAL(24,8) NOT NULL DEFAULT 0
        ''',
        '''
        ALTER TABLE campaigns ADD COLUMN IF NOT EXISTS supporter_count INT8 NOT NULL DEFAULT 0
        ''',
        '''
        ALTER TABLE memos ADD COLUMN IF NOT EXISTS amount INT8 NOT NULL DEFAULT 0
        ''',
        '''
        CREATE INDEX IF NOT EXISTS idx_memos_supporter
        ON memos (campaign_id, creator_address, user_address)
        ''',
        '''
        CREATE TABLE IF NOT EXISTS conversations (
            thread_key TEXT PRIMARY KEY,
            participant_a TEXT NOT NULL,
            participant_b TEXT NOT NULL,
            campaign_id INT8,
            messages JSONB NOT NULL DEFAULT '[]',
            last_message_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
        ''',
        '''
        CREATE INDEX IF NOT EXISTS idx_conversations_a
        ON conversations (participant_a, last_message_at DESC)
        ''',
        '''
        CREATE INDEX IF NOT EXISTS idx_conversations_b
        ON conversations (participant_b, last_message_at DESC)
        '''
    ]
}
