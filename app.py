import streamlit as st
from photo_poem import EmptyOutputError, GenerationError, ValidationError, generate_poem
from photo_poem.config import MAX_UPLOAD_BYTES, configure_logging
from photo_poem.schema_models import to_data_uri

configure_logging()

LET_AI_DECIDE = "Let AI Decide"
POEM_TONES = [LET_AI_DECIDE, "Reflective", "Happy", "Sad", "Romantic", "Humorous", "Mysterious", "Hopeful", "Nostalgic"]
POEM_LANGUAGES = ["English", "Spanish", "French", "German", "Japanese", "Italian", "Portuguese", "Russian"]


def track_photo(state, photo) -> None:
    """Forgets the previous poem whenever a different photo is uploaded."""
    photo_key = (photo.name, photo.size) if photo is not None else None
    if state.get("photo_key") != photo_key:
        state["photo_key"] = photo_key
        state["poem_result"] = None


def main():
    st.title("Photo Poet")
    st.write("Upload a photo and get a poem inspired by it.")

    if "poem_result" not in st.session_state:
        st.session_state.poem_result = None

    photo = st.file_uploader("📷 Photo (Max 5MB)", type=["png", "jpg", "jpeg", "webp", "gif"])
    track_photo(st.session_state, photo)
    if photo is not None:
        st.image(photo, use_container_width=True)

    tone = st.selectbox("😊 Tone", POEM_TONES)
    language = st.selectbox("🌐 Language", POEM_LANGUAGES)
    description = st.text_area("📝 Scene description (optional)", placeholder="e.g. a quiet lake at dawn")

    if st.button("✨ Generate Poem"):
        if photo is None:
            st.error("⚠️ Please upload a photo first.")
            return
        if photo.size > MAX_UPLOAD_BYTES:
            st.error("⚠️ Please upload an image smaller than 5MB.")
            return

        inputs = {
            "photoDataUri": to_data_uri(photo.getvalue(), photo.type or "image/jpeg"),
            # Absent tone lets the model pick one from the photo
            "tone": None if tone == LET_AI_DECIDE else tone.lower(),
            "language": language,
            "description": description or None,
        }
        with st.spinner("✍️ Writing your poem..."):
            try:
                st.session_state.poem_result = generate_poem(inputs)
            except ValidationError as e:
                st.error(f"⚠️ Invalid request: {e}")
                return
            except (GenerationError, EmptyOutputError) as e:
                st.error(f"❌ Poem generation failed: {e}")
                return

    if st.session_state.poem_result:
        st.subheader(st.session_state.poem_result["title"])
        st.text(st.session_state.poem_result["poem"])


if __name__ == "__main__":
    main()
