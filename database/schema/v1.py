"""Schema v1 - Initial database schema.

This version includes tables for:
- User profiles keyed by Aptos address
- Campaigns created by users
- Settlement memos mirrored from the ledger
"""

schema = {
    'version': 1,
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
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_memos_campaign', 'columns': ['campaign_id', 'creator_address', 'created_at DESC']}
            ]
        }
    ],
    'migrations': []
}
