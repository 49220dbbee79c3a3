"""
SQL schema for the wardrobe tables.
Run these queries in your Supabase SQL editor.
"""

CREATE_WARDROBE_ITEMS_TABLE = """
-- Saved outfits with their analysis and extracted clothing items
CREATE TABLE IF NOT EXISTS wardrobe_items (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES auth.users(id) ON DELETE CASCADE,
    image_url TEXT NOT NULL,
    original_image_url TEXT,
    rating_score NUMERIC(3, 1),
    feedback TEXT,
    suggestions TEXT[],
    gender VARCHAR(16),
    feedback_mode VARCHAR(16) DEFAULT 'normal',
    occasion_context TEXT,
    extracted_clothing_items JSONB DEFAULT '[]'::jsonb,
    cropped_images JSONB,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- Create indexes for faster lookups
CREATE INDEX IF NOT EXISTS idx_wardrobe_items_user_id ON wardrobe_items(user_id);
CREATE INDEX IF NOT EXISTS idx_wardrobe_items_created_at ON wardrobe_items(created_at);

-- Enable Row Level Security
ALTER TABLE wardrobe_items ENABLE ROW LEVEL SECURITY;

-- Policy: Users can read their own wardrobe
CREATE POLICY wardrobe_items_select_own ON wardrobe_items
    FOR SELECT
    USING (auth.uid()::text = user_id::text);

-- Policy: Service role can do everything (for API)
CREATE POLICY wardrobe_items_service_role_all ON wardrobe_items
    FOR ALL
    USING (auth.role() = 'service_role');
"""

CREATE_UPDATED_AT_TRIGGER = """
-- Function to update updated_at timestamp
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Trigger for wardrobe_items table
DROP TRIGGER IF EXISTS update_wardrobe_items_updated_at ON wardrobe_items;
CREATE TRIGGER update_wardrobe_items_updated_at
    BEFORE UPDATE ON wardrobe_items
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column();
"""

# Combined setup script
FULL_SCHEMA_SETUP = f"""
-- =====================================================
-- RateMyFit Wardrobe Schema Setup
-- =====================================================
-- Run this in your Supabase SQL Editor
-- The outfit-images storage bucket is created by the API on startup
-- =====================================================

{CREATE_WARDROBE_ITEMS_TABLE}

{CREATE_UPDATED_AT_TRIGGER}

-- =====================================================
-- Setup Complete!
-- =====================================================
"""

if __name__ == "__main__":
    print(FULL_SCHEMA_SETUP)
