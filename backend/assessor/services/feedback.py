"""
Narrative feedback synthesis.

Prompts are authored per language (not machine-translated) and looked up by
language code; unknown codes use the default entry, parameterized with the
language's English name. After the first pass the reply is verified: when the
target language is written in a non-Latin script but the reply opens mostly in
Latin letters, the model ignored the language instruction and one forced
re-translation pass runs before the text is cleaned and returned.

There is no fallback narrative. Failures propagate as FeedbackError.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from ..errors import FeedbackError, ServiceUnavailableError
from ..gemini_client import GeminiClient, Message
from ..schemas import AssessmentResult, AssistantSummary, ScoredAnalysis
from .language import DEFAULT_LANGUAGE, language_name

logger = logging.getLogger(__name__)

LEAKAGE_SAMPLE_CHARS = 100

# Languages whose native script is not Latin; leakage is only detectable for these.
NON_LATIN_SCRIPT_LANGUAGES = frozenset(
	{"hi", "mr", "ar", "ur", "gu", "bn", "ta", "te", "kn", "ml", "pa", "ru", "ja", "zh"}
)


@dataclass(frozen=True)
class FeedbackPrompt:
	system: str
	user: str
	translator_system: str
	translator_user: str
	reminders: Tuple[str, ...] = field(default_factory=tuple)


_DEFAULT_PROMPT = FeedbackPrompt(
	system=(
		"You are Aynstyn, a kind and inspiring educational assistant. You must respond entirely in {language_name}. "
		"Your role is to provide positive and constructive feedback to students.\n\n"
		"Your style:\n"
		"- Always speak in {language_name}\n"
		"- Be inspiring and supportive\n"
		"- Acknowledge student strengths\n"
		"- Provide improvement suggestions\n"
		"- No numbering or ** formatting\n"
		"- Write in flowing, natural paragraphs"
	),
	user=(
		"A student has taken an assessment in {subject}. Their score is {score}.\n\n"
		"Topics they know well: {covered}\n"
		"Topics to learn: {missing}\n\n"
		"Please provide inspiring feedback in {language_name}. Tell them what they do well and how they can improve."
	),
	translator_system=(
		"You are a professional translator into {language_name}. Translate the given text accurately into "
		"{language_name}. Do not add any extra content."
	),
	translator_user="Translate this text into {language_name}:\n\n{text}",
)

FEEDBACK_PROMPTS: Dict[str, FeedbackPrompt] = {
	"hi": FeedbackPrompt(
		system=(
			"आप अयन्स्टाइन हैं, एक प्रेरणादायक शैक्षिक सहायक। आपको केवल हिंदी में जवाब देना है।\n\n"
			"महत्वपूर्ण निर्देश:\n"
			"- आपको केवल और केवल हिंदी भाषा में जवाब देना है\n"
			"- कोई भी अंग्रेजी शब्द या वाक्य का उपयोग न करें\n"
			"- कोई नंबरिंग (1., 2.) या फॉर्मेटिंग (**) न करें\n"
			"- सिर्फ सरल हिंदी में प्रेरणादायक फीडबैक दें\n"
			"- छात्र की प्रशंसा करें और सुधार के सुझाव दें"
		),
		user=(
			"एक छात्र ने {subject} विषय में परीक्षा दी है। उसका स्कोर {score} है।\n\n"
			"वे इन विषयों में अच्छे हैं: {covered}\n"
			"इन विषयों में सुधार की जरूरत है: {missing}\n\n"
			"केवल हिंदी में उत्साहजनक फीडबैक दें। बताएं कि वे क्या अच्छा करते हैं और कैसे सुधार सकते हैं।"
		),
		translator_system="आप एक हिंदी अनुवादक हैं। दिए गए अंग्रेजी पाठ का सटीक हिंदी अनुवाद करें। कोई अतिरिक्त सामग्री न जोड़ें।",
		translator_user="इस अंग्रेजी पाठ का हिंदी में अनुवाद करें:\n\n{text}",
		reminders=("कृपया याद रखें: आपको केवल हिंदी में जवाब देना है। कोई अंग्रेजी शब्द नहीं।",),
	),
	"ar": FeedbackPrompt(
		system=(
			"أنت أينستين، مساعد تعليمي ملهم ولطيف. دورك هو تقديم ملاحظات إيجابية وبناءة للطلاب.\n\n"
			"أسلوبك:\n"
			"- تحدث دائماً بالعربية\n"
			"- كن ملهماً وداعماً\n"
			"- اعترف بنقاط القوة لدى الطالب\n"
			"- قدم اقتراحات للتحسين\n"
			"- لا ترقيم أو تنسيق **\n"
			"- اكتب بفقرات طبيعية ومتدفقة"
		),
		user=(
			"طالب أجرى تقييماً في {subject}. درجته هي {score}.\n\n"
			"المواضيع التي يعرفها جيداً: {covered}\n"
			"المواضيع التي يحتاج لتعلمها: {missing}\n\n"
			"يرجى تقديم ملاحظات ملهمة بالعربية. أخبره بما يفعله جيداً وكيف يمكنه التحسن."
		),
		translator_system="أنت مترجم إلى العربية. ترجم النص المعطى ترجمة دقيقة إلى العربية. لا تضف أي محتوى إضافي.",
		translator_user="ترجم هذا النص إلى العربية:\n\n{text}",
	),
	"es": FeedbackPrompt(
		system=(
			"Eres Aynstyn, un asistente educativo inspirador y amable. Tu papel es proporcionar comentarios "
			"positivos y constructivos a los estudiantes.\n\n"
			"Tu estilo:\n"
			"- Habla siempre en español\n"
			"- Sé inspirador y solidario\n"
			"- Reconoce las fortalezas del estudiante\n"
			"- Proporciona sugerencias de mejora\n"
			"- Sin numeración o formato **\n"
			"- Escribe en párrafos naturales y fluidos"
		),
		user=(
			"Un estudiante ha tomado una evaluación en {subject}. Su puntuación es {score}.\n\n"
			"Temas que conoce bien: {covered}\n"
			"Temas para aprender: {missing}\n\n"
			"Por favor proporciona comentarios inspiradores en español. Dile qué hace bien y cómo puede mejorar."
		),
		translator_system="Eres un traductor al español. Traduce el texto dado con precisión al español. No añadas contenido adicional.",
		translator_user="Traduce este texto al español:\n\n{text}",
	),
	"fr": FeedbackPrompt(
		system=(
			"Tu es Aynstyn, un assistant pédagogique bienveillant et inspirant. Ton rôle est d'offrir aux élèves "
			"des retours positifs et constructifs.\n\n"
			"Ton style :\n"
			"- Parle toujours en français\n"
			"- Sois inspirant et encourageant\n"
			"- Reconnais les points forts de l'élève\n"
			"- Propose des pistes d'amélioration\n"
			"- Pas de numérotation ni de mise en forme **\n"
			"- Écris en paragraphes naturels et fluides"
		),
		user=(
			"Un élève a passé une évaluation en {subject}. Son score est de {score}.\n\n"
			"Sujets qu'il maîtrise : {covered}\n"
			"Sujets à apprendre : {missing}\n\n"
			"Donne-lui un retour inspirant en français. Dis-lui ce qu'il fait bien et comment il peut progresser."
		),
		translator_system="Tu es un traducteur vers le français. Traduis fidèlement le texte donné en français. N'ajoute aucun contenu.",
		translator_user="Traduis ce texte en français :\n\n{text}",
	),
}


def feedback_prompt_for(language: str) -> FeedbackPrompt:
	return FEEDBACK_PROMPTS.get(language, _DEFAULT_PROMPT)


def _is_latin_letter(ch: str) -> bool:
	# Basic Latin through Latin Extended-B
	return ch.isalpha() and ord(ch) < 0x250


def is_latin_dominated(text: str, sample_chars: int = LEAKAGE_SAMPLE_CHARS) -> bool:
	"""True when most letters in the opening sample_chars of text are Latin."""
	letters = [ch for ch in (text or "")[:sample_chars] if ch.isalpha()]
	if not letters:
		return False
	latin = sum(1 for ch in letters if _is_latin_letter(ch))
	return latin * 2 > len(letters)


def needs_retranslation(text: str, language: str) -> bool:
	if language == DEFAULT_LANGUAGE or language not in NON_LATIN_SCRIPT_LANGUAGES:
		return False
	return is_latin_dominated(text)


def clean_feedback_text(text: str) -> str:
	"""Strip markdown emphasis and list markers, collapse runs of blank lines."""
	cleaned = re.sub(r"\*\*(.*?)\*\*", r"\1", text or "", flags=re.DOTALL)
	cleaned = re.sub(r"^[ \t]*\d{1,2}[.)][ \t]+", "", cleaned, flags=re.MULTILINE)
	cleaned = re.sub(r"^[ \t]*[-•][ \t]+", "", cleaned, flags=re.MULTILINE)
	cleaned = re.sub(r"\n\s*\n\s*\n+", "\n\n", cleaned)
	return cleaned.strip()


def build_feedback_messages(subject: str, result: Union[AssessmentResult, ScoredAnalysis], language: str) -> List[Message]:
	prompt = feedback_prompt_for(language)
	values = {
		"subject": subject,
		"score": result.score,
		"covered": ", ".join(t.name for t in result.covered_topics),
		"missing": ", ".join(t.name for t in result.missing_topics),
		"language_name": language_name(language),
	}
	messages: List[Message] = [
		{"role": "system", "content": prompt.system.format(**values)},
		{"role": "user", "content": prompt.user.format(**values)},
	]
	for reminder in prompt.reminders:
		messages.append({"role": "user", "content": reminder})
	return messages


async def _retranslate(client: GeminiClient, text: str, language: str) -> str:
	prompt = feedback_prompt_for(language)
	name = language_name(language)
	reply = await client.complete(
		[
			{"role": "system", "content": prompt.translator_system.format(language_name=name)},
			{"role": "user", "content": prompt.translator_user.format(language_name=name, text=text)},
		],
		temperature=0.1,
		max_tokens=1000,
	)
	return (reply or "").strip()


async def generate_assistant_summary(
	client: Optional[GeminiClient],
	subject: str,
	user_input: str,
	result: Union[AssessmentResult, ScoredAnalysis],
	language: str = DEFAULT_LANGUAGE,
) -> AssistantSummary:
	"""Generate the inspirational narrative summary for an assessment.

	Args:
		client: Completion client, or None when the service is not configured
		subject: Assessed subject
		user_input: The user's original (or transcribed) answer
		result: The refined analysis or the assembled result; only the score and topic names are used
		language: Detected language code the narrative must be written in

	Returns:
		AssistantSummary with cleaned, unformatted narrative text

	Raises:
		ServiceUnavailableError: No completion credentials are configured
		FeedbackError: The upstream call failed or returned no text
	"""
	if client is None:
		raise ServiceUnavailableError("Feedback is unavailable: the completion service is not configured")
	logger.info("Generating assistant summary for %r in %s (input %d characters)", subject, language, len(user_input or ""))
	try:
		reply = await client.complete(
			build_feedback_messages(subject, result, language),
			temperature=0.2,
			max_tokens=1000,
		)
	except Exception as e:
		logger.error("Feedback generation failed: %s", e)
		raise FeedbackError(f"Failed to generate assistant summary: {e}") from e
	text = (reply or "").strip()
	if not text:
		raise FeedbackError("Failed to generate assistant summary: empty response")

	if needs_retranslation(text, language):
		logger.warning("Feedback reply is not in %s; forcing a re-translation pass", language)
		try:
			translated = await _retranslate(client, text, language)
		except Exception as e:
			logger.warning("Re-translation failed, keeping first-pass text: %s", e)
		else:
			if translated:
				text = translated

	return AssistantSummary(enhanced_feedback=clean_feedback_text(text))
