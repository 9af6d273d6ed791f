"""Console UI for lexadapt practice sessions."""

from cli.api_client import LexadaptAPIClient


class ConsoleUI:
    """Interactive practice loop: show a word, let the learner type it back."""

    def __init__(self, client: LexadaptAPIClient):
        self.client = client
        self.difficulty = 'intermediate'
        self.session_id = None
        # Most recent first, as the mid-session check expects
        self.outcomes: list[bool] = []

    def print_evaluation(self, result: dict, word: str, answer: str):
        """Print evaluation results."""
        print('-' * 40)
        print(f'Target word: {word}')
        print(f'Your answer: {answer}')
        print(f"Accuracy: {result['accuracy']} ({result['category']})")
        print(result['feedback'])
        print('-' * 40)

    def print_stats(self, stats: dict):
        """Print the learner's vocabulary summary."""
        summary = stats['stats']
        print('\n' + '=' * 50)
        print(f'VOCABULARY ({stats["language"]})')
        print('=' * 50)
        print(f'Words encountered: {summary["total_words_encountered"]}')
        print(f'Passive vocabulary: {summary["passive_vocabulary"]}')
        print(f'Active vocabulary: {summary["active_vocabulary"]}')
        print(f'Mastered: {summary["mastered_words"]}')
        print(f'Struggling: {summary["struggling_words"]}')
        if stats['struggling_words']:
            print(f'  Practice: {", ".join(stats["struggling_words"])}')
        distribution = summary['mastery_distribution']
        print('Mastery: ' + ', '.join(f'{k} {v}' for k, v in distribution.items()))
        print('=' * 50 + '\n')

    def print_progress(self):
        total = len(self.outcomes)
        correct = sum(1 for o in self.outcomes if o)
        print(f'Session: {correct}/{total} correct | Level: {self.difficulty}')

    def start(self):
        """Ask the server where this session should start."""
        recommendation = self.client.get_starting_difficulty()
        self.difficulty = recommendation['suggested_difficulty']
        print(f"\nStarting at {self.difficulty} (confidence {recommendation['confidence']:.0%})")
        for reason in recommendation['reasoning']:
            print(f'  - {reason}')

    def apply_mid_session_check(self):
        adjustment = self.client.check_mid_session(self.outcomes, self.difficulty)
        if adjustment:
            self.difficulty = adjustment['suggested_level']
            print(f"\n*** Difficulty changed to {self.difficulty} ***")
            for reason in adjustment['reasons']:
                print(f'  {reason}')
            print()

    def finish(self):
        """Store the session summary if anything was practised."""
        if not self.outcomes:
            return
        correct = sum(1 for o in self.outcomes if o)
        try:
            self.client.save_session(self.difficulty, len(self.outcomes), correct, self.session_id)
            print(f'Session saved: {correct}/{len(self.outcomes)} correct.')
        except Exception as e:
            print(f"Error saving session: {e}")

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to lexadapt server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        try:
            self.start()
        except Exception as e:
            print(f"Error getting starting difficulty, using {self.difficulty}: {e}")

        print('Type each word back. Commands: "stats" for vocabulary, "exit" to quit\n')

        while True:
            try:
                data = self.client.next_word(self.difficulty, self.session_id)
            except Exception as e:
                print(f"Error getting next word: {e}")
                self.finish()
                return

            self.session_id = data['session_id']
            word = data['word']
            print(f"\n>>> {word}")

            answer = ''
            while not answer:
                user_input = input('==> ').strip()

                if user_input.lower() == 'exit':
                    self.finish()
                    print('Goodbye!')
                    return

                elif user_input.lower() == 'stats':
                    try:
                        self.print_stats(self.client.get_vocabulary_stats())
                    except Exception as e:
                        print(f"Error getting stats: {e}")
                    print(f"\n>>> {word}")

                else:
                    answer = user_input

            try:
                result = self.client.evaluate(answer, [word])
                self.print_evaluation(result, word, answer)
                self.client.observe(word, result['is_correct'])
                self.outcomes.insert(0, result['is_correct'])
                self.print_progress()
                self.apply_mid_session_check()
            except Exception as e:
                print(f"Error evaluating answer: {e}")
